"""Validated inputs accepted by the account orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Iterable, Mapping

from .errors import ValidationError


def _require_string(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{name} string is required", detail={"field": name})
    return value


def _scope_set(scopes: Iterable[str] | None) -> frozenset[str]:
    if scopes is None:
        return frozenset()
    if isinstance(scopes, str):
        raise ValidationError("scopes must be a collection of strings", detail={"field": "scopes"})
    return frozenset(scopes)


@dataclass(slots=True, frozen=True)
class RegisterInput:
    """Fields required to register an account.

    ``extra`` keeps caller-supplied fields the orchestrator does not interpret,
    so hooks can read them.
    """

    identity: str
    secret: str
    scopes: frozenset[str] = frozenset()
    provider: str = "basic"
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Any) -> "RegisterInput":
        if not isinstance(data, Mapping):
            raise ValidationError("register input must be a mapping")
        known = {f.name for f in fields(cls)}
        return cls(
            identity=data.get("identity"),
            secret=data.get("secret"),
            scopes=_scope_set(data.get("scopes")),
            provider=data.get("provider") or "basic",
            extra={k: v for k, v in data.items() if k not in known},
        ).validate()

    def validate(self) -> "RegisterInput":
        _require_string(self.identity, "identity")
        _require_string(self.secret, "secret")
        _require_string(self.provider, "provider")
        return self

    def merge(self, overrides: "RegisterInput | Mapping[str, Any] | None") -> "RegisterInput":
        """Apply hook-produced overrides on top of the caller's fields.

        A ``RegisterInput`` replaces the input wholesale; a mapping overrides
        the named fields only and unknown keys are merged into ``extra``.
        """
        if overrides is None:
            return self
        if isinstance(overrides, RegisterInput):
            return overrides.validate()
        if not isinstance(overrides, Mapping):
            raise ValidationError("register hook must return a mapping or RegisterInput")
        changes: dict[str, Any] = {}
        extra = dict(self.extra)
        for name, value in overrides.items():
            if name == "scopes":
                changes["scopes"] = _scope_set(value)
            elif name in ("identity", "secret", "provider"):
                changes[name] = value
            elif name == "extra":
                extra.update(value or {})
            else:
                extra[name] = value
        return replace(self, extra=extra, **changes).validate()


@dataclass(slots=True, frozen=True)
class LoginInput:
    identity: str
    secret: str
    provider: str = "basic"

    @classmethod
    def from_mapping(cls, data: Any) -> "LoginInput":
        if not isinstance(data, Mapping):
            raise ValidationError("identity and secret properties required")
        return cls(
            identity=data.get("identity"),
            secret=data.get("secret"),
            provider=data.get("provider") or "basic",
        ).validate()

    def validate(self) -> "LoginInput":
        _require_string(self.identity, "identity")
        _require_string(self.secret, "secret")
        return self


@dataclass(slots=True, frozen=True)
class UpdatePasswordInput:
    """Password change request.

    ``raw_token`` is the caller's current token. The update variant requires
    it and invalidates it once the replacement is signed; the reset variant
    ignores it.
    """

    identity: str
    secret: str
    new_secret: str
    raw_token: str | None = None
    provider: str = "basic"

    @classmethod
    def from_mapping(cls, data: Any) -> "UpdatePasswordInput":
        if not isinstance(data, Mapping):
            raise ValidationError("password update input must be a mapping")
        return cls(
            identity=data.get("identity"),
            secret=data.get("secret"),
            new_secret=data.get("new_secret"),
            raw_token=data.get("raw_token"),
            provider=data.get("provider") or "basic",
        )

    def validate(self, *, require_token: bool) -> "UpdatePasswordInput":
        _require_string(self.identity, "identity")
        _require_string(self.secret, "secret")
        _require_string(self.new_secret, "new_secret")
        if require_token:
            _require_string(self.raw_token, "raw_token")
        return self

    def merge(
        self, overrides: "UpdatePasswordInput | Mapping[str, Any] | None"
    ) -> "UpdatePasswordInput":
        if overrides is None:
            return self
        if isinstance(overrides, UpdatePasswordInput):
            return overrides
        if not isinstance(overrides, Mapping):
            raise ValidationError("update hook must return a mapping or UpdatePasswordInput")
        allowed = {f.name for f in fields(self)}
        return replace(self, **{k: v for k, v in overrides.items() if k in allowed})
