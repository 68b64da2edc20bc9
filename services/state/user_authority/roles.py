"""Role-discriminated user variants.

A role user is a stored user plus a ``role`` discriminant: ``admin`` users
carry a permission list and an optional last login instant, ``user`` accounts
carry an optional subscription tier. The role selects exactly one shape;
unknown roles are rejected before any variant field is inspected.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Annotated, Literal, TypeAlias, assert_never

from pydantic import Field, TypeAdapter

from packages.intake_shared.validation import (
    ROOT_FIELD,
    FieldError,
    FieldRule,
    Invalid,
    ValidationResult,
)
from packages.intake_shared.validation.predicates import (
    array_of,
    has_string_key,
    is_date,
    is_record,
    is_string,
    one_of,
)
from services.state.user_authority.domain import User, plain_copy
from services.state.user_authority.shapes import USER_SHAPE

SUBSCRIPTION_TIERS = ("basic", "premium", "enterprise")

ADMIN_USER_SHAPE = USER_SHAPE.extend(
    "AdminUser",
    FieldRule("role", "role must be 'admin'", check=one_of("admin")),
    FieldRule(
        "permissions",
        "permissions must be an array of strings",
        check=array_of(is_string),
        each=is_string,
        each_message="permission must be a string",
    ),
    FieldRule(
        "lastLogin",
        "lastLogin must be a valid datetime",
        check=is_date,
        required=False,
    ),
)

REGULAR_USER_SHAPE = USER_SHAPE.extend(
    "RegularUser",
    FieldRule("role", "role must be 'user'", check=one_of("user")),
    FieldRule(
        "subscription",
        f"subscription must be one of: {', '.join(SUBSCRIPTION_TIERS)}",
        check=one_of(*SUBSCRIPTION_TIERS),
        required=False,
    ),
)

ROLE_SHAPES = {"admin": ADMIN_USER_SHAPE, "user": REGULAR_USER_SHAPE}


class AdminUser(User):
    role: Literal["admin"]
    permissions: tuple[str, ...]
    last_login: datetime | None = None


class RegularUser(User):
    role: Literal["user"]
    subscription: Literal["basic", "premium", "enterprise"] | None = None


AnyUser: TypeAlias = Annotated[AdminUser | RegularUser, Field(discriminator="role")]

_ANY_USER_ADAPTER: TypeAdapter[AnyUser] = TypeAdapter(AnyUser)


def is_admin_user(value: object) -> bool:
    return ADMIN_USER_SHAPE.is_valid(value)


def is_regular_user(value: object) -> bool:
    return REGULAR_USER_SHAPE.is_valid(value)


def validate_role_user(value: object) -> ValidationResult:
    """Validate the role discriminant, then the matching variant shape."""
    if not is_record(value):
        return Invalid(
            errors=(
                FieldError(field=ROOT_FIELD, message="AnyUser must be an object", value=value),
            )
        )
    if not has_string_key(value, "role"):
        return Invalid(
            errors=(
                FieldError(
                    field="role",
                    message="Missing or invalid role field",
                    value=value.get("role"),
                ),
            )
        )
    shape = ROLE_SHAPES.get(value["role"])
    if shape is None:
        return Invalid(
            errors=(
                FieldError(
                    field="role",
                    message=f"role must be one of: {', '.join(ROLE_SHAPES)}",
                    value=value["role"],
                ),
            )
        )
    return shape.validate(value)


def narrow_role_user(value: object) -> AnyUser | None:
    """Narrow a wire mapping into its role variant, or ``None`` if invalid."""
    if isinstance(validate_role_user(value), Invalid):
        return None
    assert isinstance(value, Mapping)
    return _ANY_USER_ADAPTER.validate_python(plain_copy(value))


def access_summary(user: AnyUser) -> str:
    """Describe what one role user may do."""
    match user:
        case AdminUser():
            granted = ", ".join(user.permissions) or "no permissions"
            return f"admin {user.id} with {granted}"
        case RegularUser():
            tier = user.subscription or "no"
            return f"user {user.id} on {tier} subscription"
        case _:
            assert_never(user)
