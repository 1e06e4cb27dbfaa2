import pytest

from common.services.gate import GateStatus, check_access, is_admin_role


@pytest.mark.parametrize(
    "role,expected",
    [
        ("Administrator", True),
        ("admin", True),
        ("Super ADMIN", True),
        ("User", False),
        ("", False),
        (None, False),
    ],
)
def test_is_admin_role(role, expected):
    assert is_admin_role(role) is expected


@pytest.mark.anyio
async def test_missing_token_is_unauthenticated(fake_backend):
    result = await check_access(fake_backend, None)
    assert result.status is GateStatus.UNAUTHENTICATED
    assert result.identity is None
    assert not result.ok


@pytest.mark.anyio
async def test_unknown_token_is_unauthenticated(fake_backend):
    result = await check_access(fake_backend, "expired", require_admin=True)
    assert result.status is GateStatus.UNAUTHENTICATED


@pytest.mark.anyio
async def test_non_admin_is_forbidden_only_when_required(fake_backend):
    plain = await check_access(fake_backend, "user-token")
    assert plain.ok
    assert plain.identity.email == "user@example.com"

    gated = await check_access(fake_backend, "user-token", require_admin=True)
    assert gated.status is GateStatus.FORBIDDEN
    assert gated.identity is not None


@pytest.mark.anyio
async def test_admin_passes(fake_backend):
    result = await check_access(fake_backend, "admin-token", require_admin=True)
    assert result.status is GateStatus.OK


@pytest.mark.anyio
async def test_custom_marker(fake_backend):
    result = await check_access(fake_backend, "user-token", require_admin=True, marker="user")
    assert result.ok
