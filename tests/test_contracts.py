from __future__ import annotations

import pytest

from accountkit.domain.contracts import LoginInput, RegisterInput, UpdatePasswordInput
from accountkit.domain.errors import ValidationError


def test_register_input_defaults_scopes_and_collects_extras():
    data = RegisterInput.from_mapping({"identity": "a@example.com", "secret": "s", "nickname": "a"})

    assert data.scopes == frozenset()
    assert data.provider == "basic"
    assert data.extra == {"nickname": "a"}


def test_register_input_rejects_scope_string():
    with pytest.raises(ValidationError) as excinfo:
        RegisterInput.from_mapping({"identity": "a", "secret": "s", "scopes": "admin"})
    assert excinfo.value.detail["field"] == "scopes"


def test_register_merge_overrides_named_fields_only():
    base = RegisterInput.from_mapping({"identity": "a", "secret": "s", "scopes": ["x"], "plan": "free"})

    merged = base.merge({"scopes": ["y"], "plan": "pro", "extra": {"ref": "ad"}})

    assert merged.identity == "a"
    assert merged.secret == "s"
    assert merged.scopes == {"y"}
    assert merged.extra == {"plan": "pro", "ref": "ad"}
    assert base.extra == {"plan": "free"}


def test_register_merge_passthrough_on_none():
    base = RegisterInput(identity="a", secret="s")
    assert base.merge(None) is base


def test_register_merge_rejects_unknown_hook_result():
    with pytest.raises(ValidationError):
        RegisterInput(identity="a", secret="s").merge(["nope"])


def test_login_input_requires_mapping():
    with pytest.raises(ValidationError):
        LoginInput.from_mapping(None)


def test_update_password_input_token_optional_for_reset():
    data = UpdatePasswordInput.from_mapping({"identity": "a", "secret": "s", "new_secret": "n"})

    assert data.validate(require_token=False) is data
    with pytest.raises(ValidationError) as excinfo:
        data.validate(require_token=True)
    assert excinfo.value.detail["field"] == "raw_token"


def test_update_password_merge_ignores_unknown_fields():
    data = UpdatePasswordInput(identity="a", secret="s", new_secret="n")

    merged = data.merge({"new_secret": "m", "colour": "blue"})

    assert merged.new_secret == "m"
    assert merged.identity == "a"
