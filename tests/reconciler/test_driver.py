"""Tests for the reconciliation driver."""

import pytest
from converge.catalog.models import Resource
from converge.config import Settings
from converge.provider.registry import ProviderRegistry
from converge.provider.rest import HttpProvider
from converge.provider.simulated import SimulatedProvider
from converge.reconciler.driver import ReconciliationDriver
from converge.reconciler.factory import build_registry, create_driver
from converge.state.models import ResourceStatus
from converge.state.store import FileStateStore, InMemoryStateStore
from converge.utils.errors import ConfigError, CycleError, ValidationError


def _res(name, *deps, **properties):
    properties.setdefault("name", name)
    return Resource(name=name, kind="test.thing", properties=properties, depends_on=list(deps))


@pytest.fixture
def provider():
    return SimulatedProvider()


@pytest.fixture
def driver(provider):
    return ReconciliationDriver(InMemoryStateStore(), ProviderRegistry(default=provider), sleep=lambda s: None)


class TestRun:
    """Test end-to-end reconciliation passes."""
    
    def test_fresh_declaration_creates_all(self, driver):
        """Test {A, B->A} on empty state creates A then B."""
        report = driver.run([_res("b", "a"), _res("a")])
        
        assert report.status == "success"
        assert [(r.target, r.action) for r in report.results] == [("a", "create"), ("b", "create")]
        records = driver.store.load()
        assert records["a"].status == ResourceStatus.ACTIVE
        assert records["b"].status == ResourceStatus.ACTIVE
    
    def test_failure_isolated_to_dependents(self, driver, provider):
        """Test A failing permanently skips B and records both states."""
        provider.fail_permanently("create", "a")
        report = driver.run([_res("a"), _res("b", "a")])
        
        assert report.status == "failed"
        assert report.result_for("b").outcome == "skipped"
        records = driver.store.load()
        assert records["a"].status == ResourceStatus.FAILED
        assert records["b"].status == ResourceStatus.ABSENT
    
    def test_next_run_recovers_after_failure(self, driver, provider):
        provider.fail_transiently("create", "a", times=4)
        driver.run([_res("a"), _res("b", "a")])
        
        report = driver.run([_res("a"), _res("b", "a")])
        
        assert report.status == "success"
        assert driver.store.get("b").status == ResourceStatus.ACTIVE
    
    def test_empty_declaration_deletes_all(self, driver, provider):
        """Test removing every resource deletes B before A."""
        driver.run([_res("a"), _res("b", "a")])
        report = driver.run([])
        
        assert [(r.target, r.action) for r in report.results] == [("b", "delete"), ("a", "delete")]
        assert provider.resources == {}
        assert all(record.status == ResourceStatus.ABSENT for record in driver.store.load().values())
    
    def test_second_run_is_idempotent(self, driver, provider):
        resources = [_res("a"), _res("b", "a"), _res("c", "a")]
        driver.run(resources)
        provider.calls.clear()
        
        report = driver.run(resources)
        
        assert report.status == "success"
        assert {r.action for r in report.results} == {"no-op"}
        assert provider.calls == []
    
    def test_cycle_aborts_before_provider_calls(self, driver, provider):
        with pytest.raises(CycleError):
            driver.run([_res("a", "b"), _res("b", "a")])
        assert provider.calls == []
        assert driver.store.load() == {}
    
    def test_unknown_dependency_aborts(self, driver, provider):
        with pytest.raises(ValidationError):
            driver.run([_res("a", "missing")])
        assert provider.calls == []


class TestRefresh:
    """Test drift-aware runs."""
    
    def test_missing_resource_recreated(self, driver, provider):
        driver.run([_res("a")])
        provider.resources.clear()
        
        report = driver.run([_res("a")], refresh=True)
        
        assert report.result_for("a").action == "create"
        assert driver.last_drift.missing == ["a"]
        assert driver.store.get("a").external_id in provider.resources
    
    def test_drifted_resource_updated(self, driver, provider):
        driver.run([_res("a", size=1)])
        external_id = driver.store.get("a").external_id
        provider.resources[external_id][1]["size"] = 99
        
        report = driver.run([_res("a", size=1)], refresh=True)
        
        assert report.result_for("a").action == "update"
        assert provider.resources[external_id][1]["size"] == 1
    
    def test_plan_only_does_not_write_state(self, driver, provider):
        driver.run([_res("a")])
        provider.resources.clear()
        before = driver.store.load()
        
        result = driver.plan_only([_res("a")], refresh=True)
        
        assert result.get("a").action == "create"
        assert driver.store.load() == before


class TestFactory:
    """Test wiring from settings."""
    
    def test_simulated_provider_by_default(self, tmp_path):
        settings = Settings(state={"path": str(tmp_path / "state.json")})
        driver = create_driver(settings)
        
        assert isinstance(driver.store, FileStateStore)
        assert isinstance(driver.registry.default, SimulatedProvider)
        assert driver.executor.max_workers == 4
    
    def test_http_provider_requires_endpoint(self):
        with pytest.raises(ConfigError, match="endpoint"):
            build_registry(Settings(provider={"name": "http"}))
    
    def test_http_provider(self):
        registry = build_registry(Settings(provider={"name": "http", "endpoint": "http://cp.local/"}))
        assert isinstance(registry.default, HttpProvider)
        assert registry.default.base_url == "http://cp.local"
    
    def test_unknown_provider(self):
        with pytest.raises(ConfigError, match="Unknown provider"):
            build_registry(Settings(provider={"name": "carrier-pigeon"}))


class TestReconcileEntryPoint:
    """Test the package-level reconcile() helper."""
    
    def test_reconcile_from_files(self, tmp_path):
        from converge import reconcile
        
        catalog = tmp_path / "catalog.yaml"
        catalog.write_text("resources:\n  - {name: a, kind: k}\n  - {name: b, kind: k, depends_on: [a]}\n")
        config = tmp_path / "converge.yaml"
        config.write_text(f"state:\n  path: {tmp_path / 'state.json'}\n")
        
        report = reconcile(str(catalog), config_path=str(config))
        
        assert report.status == "success"
        assert FileStateStore(str(tmp_path / "state.json")).get("b").status == ResourceStatus.ACTIVE
