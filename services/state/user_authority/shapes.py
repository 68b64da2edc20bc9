"""Declared wire shapes for stored users and their nested records."""

from __future__ import annotations

from packages.intake_shared.validation import FieldRule, Shape
from packages.intake_shared.validation.predicates import (
    array_of,
    is_boolean,
    is_date,
    is_non_empty_string,
    is_plain_object,
    is_positive_integer,
    is_valid_email,
    is_valid_phone_number,
)

ADDRESS_SHAPE = Shape(
    "Address",
    [
        FieldRule("street", "street must be a non-empty string", check=is_non_empty_string),
        FieldRule("city", "city must be a non-empty string", check=is_non_empty_string),
        FieldRule("state", "state must be a non-empty string", check=is_non_empty_string),
        FieldRule("zipCode", "zipCode must be a non-empty string", check=is_non_empty_string),
        FieldRule("country", "country must be a non-empty string", check=is_non_empty_string),
    ],
)

CONTACT_INFO_SHAPE = Shape(
    "ContactInfo",
    [
        FieldRule("email", "email must be a valid email address", check=is_valid_email),
        FieldRule(
            "phone",
            "phone must contain at least 10 digits",
            check=is_valid_phone_number,
            required=False,
        ),
        FieldRule(
            "address",
            "address must be a complete address",
            shape=ADDRESS_SHAPE,
            required=False,
        ),
    ],
)

USER_SHAPE = Shape(
    "User",
    [
        FieldRule("id", "id must be a non-empty string", check=is_non_empty_string),
        FieldRule("name", "name must be a non-empty string", check=is_non_empty_string),
        FieldRule("contact", "contact must be valid contact info", shape=CONTACT_INFO_SHAPE),
        FieldRule("age", "age must be a positive integer", check=is_positive_integer),
        FieldRule("isActive", "isActive must be a boolean", check=is_boolean),
        FieldRule(
            "tags",
            "tags must be an array of non-empty strings",
            check=array_of(is_non_empty_string),
            each=is_non_empty_string,
            each_message="tag must be a non-empty string",
        ),
        FieldRule(
            "metadata",
            "metadata must be a plain object",
            check=is_plain_object,
            required=False,
        ),
        FieldRule("createdAt", "createdAt must be a valid datetime", check=is_date),
        FieldRule("updatedAt", "updatedAt must be a valid datetime", check=is_date),
    ],
)

SYSTEM_FIELDS = frozenset({"id", "createdAt", "updatedAt"})
UPDATABLE_FIELDS = frozenset(USER_SHAPE.field_names) - SYSTEM_FIELDS
SORTABLE_FIELDS = ("id", "name", "age", "isActive", "createdAt", "updatedAt")
