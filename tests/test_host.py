"""Tests for the per-module host context."""

import pytest
from vault_loader.host import HostContext
from vault_loader.host import ScopedRequire

pytestmark = pytest.mark.anyio


@pytest.fixture(scope="module")
def anyio_backend():
    """Configure anyio to use asyncio backend only."""
    return "asyncio"


class TestHostContext:
    async def test_capabilities_are_attributes(self, make_loader):
        loader = make_loader(capabilities={"greeting": "hi"})
        host = loader.create_host("lib/a.py")

        assert host.greeting == "hi"
        assert host.capabilities == {"greeting": "hi"}
        assert host.source == "lib/a.py"
        assert host.loader is loader

    async def test_unknown_capability_raises_attribute_error(self, make_loader):
        host = make_loader().create_host()

        with pytest.raises(AttributeError, match="no capability 'missing'"):
            host.missing

    async def test_capabilities_are_read_only(self, make_loader):
        host = make_loader(capabilities={"x": 1}).create_host()

        with pytest.raises(TypeError):
            host.capabilities["x"] = 2  # type: ignore[index]

    async def test_require_is_scoped_to_source(self, make_loader):
        loader = make_loader({"lib/util.py": "module.exports = 'util'"})
        host = loader.create_host("lib/main.py")

        assert isinstance(host.require, ScopedRequire)
        assert await host.require("./util") == "util"

    async def test_require_exposes_cache_and_extensions(self, make_loader):
        loader = make_loader({"a.py": "module.exports = (sorted(require.extensions), dict(require.cache))"})

        extensions, cache = await loader.require("a")

        assert extensions == ["json", "py"]
        assert cache == {}
        assert isinstance(loader.create_host(), HostContext)

    async def test_scripts_receive_their_own_host(self, make_loader):
        loader = make_loader({"lib/a.py": "module.exports = host.source"})

        assert await loader.require("/lib/a") == "lib/a.py"
