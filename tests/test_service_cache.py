"""Tests for autoingress.service_cache."""

from autoingress.service_cache import ServiceCache
from autoingress.utils import object_key
from conftest import make_service


def cached(cache):
    return {object_key(service): service for service in cache.get_all()}


class TestServiceCache:

    def test_add_returns_previous(self):
        cache = ServiceCache()
        first = make_service(resource_version="1")
        second = make_service(resource_version="2")

        assert cache.add_or_update(first) is None
        assert cache.add_or_update(second) is first
        assert cached(cache)["default/s1"] is second
        assert len(cache) == 1

    def test_keys_include_namespace(self):
        cache = ServiceCache()
        cache.add_or_update(make_service(name="a", namespace="ns1"))
        cache.add_or_update(make_service(name="a", namespace="ns2"))
        assert sorted(cached(cache)) == ["ns1/a", "ns2/a"]

    def test_remove(self):
        cache = ServiceCache()
        service = make_service()
        cache.add_or_update(service)

        assert cache.remove("default", "s1") is service
        assert cache.remove("default", "s1") is None
        assert cache.get_all() == []

    def test_replace_returns_previous_contents(self):
        cache = ServiceCache()
        old_a = make_service(name="a")
        cache.add_or_update(old_a)
        cache.add_or_update(make_service(name="b"))

        new_a = make_service(name="a", resource_version="5")
        previous = cache.replace([new_a, make_service(name="c")])

        assert set(previous) == {"default/a", "default/b"}
        assert previous["default/a"] is old_a
        assert cached(cache)["default/a"] is new_a
        assert sorted(cached(cache)) == ["default/a", "default/c"]
