"""
Tests for the provision orchestrator — step order, short-circuiting,
enable/disable reconciliation, and removal.
"""

import os
from pathlib import Path

import pytest

from vhostctl.core.engine.orchestrator import ProvisionOrchestrator
from vhostctl.core.models.site import Site


def _hosts(settings) -> str:
    return Path(settings.hosts_file).read_text()


@pytest.fixture
def orchestrator(settings, executor) -> ProvisionOrchestrator:
    return ProvisionOrchestrator(settings, executor)


APPLY_STEPS = [
    "preflight",
    "hosts_reconcile",
    "write_config",
    "enable_or_disable",
    "test_config",
    "reload_web_server",
    "reload_runtime",
]

REMOVE_STEPS = [
    "preflight",
    "hosts_remove",
    "delete_enabled_link",
    "delete_available_file",
    "test_config",
    "reload_web_server",
]


class TestApply:
    def test_enabled_site_end_to_end(self, orchestrator, settings, site):
        ok, log = orchestrator.provision(site)

        assert ok, log
        assert "127.0.0.1\tdemo.test\t# vhost-manager" in _hosts(settings)

        state = orchestrator.vhosts.inspect("demo.test")
        assert state.available_exists
        assert state.linked_to_available
        content = Path(state.available_path).read_text()
        assert f"root {site.source_path};" in content
        assert "fastcgi_pass unix:/run/php/php8.1-fpm.sock;" in content

        markers = [
            "hosts: added demo.test",
            "config written:",
            "site enabled:",
            "nginx config test passed",
            "nginx reloaded via:",
            "PHP 8.1 runtime reloaded via:",
        ]
        positions = [log.index(m) for m in markers]
        assert positions == sorted(positions)

    def test_report_steps(self, orchestrator, site):
        report = orchestrator.apply(site)
        assert report.ok
        assert report.operation == "provision"
        assert report.step_names == APPLY_STEPS
        assert report.failed_step is None

    def test_reapply_is_idempotent(self, orchestrator, settings, site, executor):
        orchestrator.provision(site)
        hosts_after_first = _hosts(settings)

        ok, log = orchestrator.provision(site)

        assert ok, log
        assert _hosts(settings) == hosts_after_first
        assert "already contains demo.test" in log

    def test_disabled_site(self, orchestrator, settings, site, executor):
        orchestrator.provision(site)
        disabled = site.model_copy(update={"enabled": False})

        ok, log = orchestrator.provision(disabled)

        assert ok, log
        assert "hosts: removed demo.test" in log
        assert "site disabled:" in log
        assert "demo.test" not in _hosts(settings)
        state = orchestrator.vhosts.inspect("demo.test")
        assert not state.enabled_exists
        assert state.available_exists

    def test_disabled_site_never_enabled(self, orchestrator, site, settings):
        ok, log = orchestrator.provision(site.model_copy(update={"enabled": False}))
        assert ok, log
        assert "hosts: no managed entry for demo.test" in log
        assert "site disabled:" in log
        assert orchestrator.vhosts.inspect("demo.test").available_exists

    def test_write_config_failure_short_circuits(self, orchestrator, settings, site, executor):
        available = orchestrator.vhosts.available_path("demo.test")
        executor.set_failure(f"tee {available}", output="tee: Read-only file system")

        ok, log = orchestrator.provision(site)

        assert not ok
        assert "ERROR:" in log
        assert "Read-only file system" in log
        assert not executor.ran("ln -sf")
        assert not executor.ran("nginx -t")
        assert not executor.ran("reload")
        assert "== Enable site ==" not in log

        report = orchestrator.apply(site)
        assert report.failed_step == "write_config"
        assert report.error_kind == "io"
        assert report.step_names == APPLY_STEPS[:3]

    def test_no_rollback_of_earlier_steps(self, orchestrator, settings, site, executor):
        executor.set_failure("nginx -t")
        ok, _log = orchestrator.provision(site)
        assert not ok
        # hosts line and config stay; nothing is undone
        assert "demo.test" in _hosts(settings)
        assert orchestrator.vhosts.inspect("demo.test").linked_to_available
        assert not executor.ran("reload")

    def test_config_test_failure(self, orchestrator, site, executor):
        executor.set_failure("nginx -t", output="nginx: [emerg] bad config")
        report = orchestrator.apply(site)
        assert report.failed_step == "test_config"
        assert report.error_kind == "config_test"
        assert "[emerg] bad config" in report.log

    def test_web_server_fallback(self, orchestrator, site, executor):
        executor.set_failure("systemctl reload nginx")
        ok, log = orchestrator.provision(site)
        assert ok, log
        assert "systemctl reload nginx" in log
        assert "nginx reloaded via:" in log
        assert executor.ran("nginx -s reload")

    def test_runtime_reload_exhausted(self, orchestrator, site, executor):
        executor.set_failure("php8.1-fpm")
        report = orchestrator.apply(site)
        assert report.failed_step == "reload_runtime"
        assert report.error_kind == "reload"
        assert report.log.count("php8.1-fpm") >= 3

    def test_non_utf8_hosts_file(self, orchestrator, settings, site):
        Path(settings.hosts_file).write_bytes(b"127.0.0.1\tlocalhost\n10.0.0.1\tcaf\xe9.lan\n")

        ok, log = orchestrator.provision(site)

        assert ok, log
        raw = Path(settings.hosts_file).read_bytes()
        assert b"10.0.0.1\tcaf\xe9.lan\n" in raw
        assert raw.endswith(b"127.0.0.1\tdemo.test\t# vhost-manager\n")

    def test_unexpected_exception_becomes_failed_step(self, orchestrator, site, monkeypatch):
        def explode(domain, transcript=None):
            raise RuntimeError("boom")

        monkeypatch.setattr(orchestrator.hosts, "add", explode)

        ok, log = orchestrator.provision(site)

        assert not ok
        assert "ERROR: Unexpected RuntimeError: boom" in log
        report = orchestrator.apply(site)
        assert report.failed_step == "hosts_reconcile"
        assert report.error_kind == "internal"
        assert report.step_names == APPLY_STEPS[:2]


class TestPreflight:
    def test_privilege_failure_before_mutation(self, orchestrator, settings, site, executor):
        executor.set_failure("true", output="sudo: a password is required")
        before = _hosts(settings)

        ok, log = orchestrator.provision(site)

        assert not ok
        assert "sudo: a password is required" in log
        assert _hosts(settings) == before
        assert executor.call_count == 1
        assert orchestrator.apply(site).error_kind == "privilege"

    def test_execution_disabled(self, orchestrator, settings, site, executor):
        executor.set_available(False)
        report = orchestrator.apply(site)
        assert not report.ok
        assert report.failed_step == "preflight"
        assert report.error_kind == "capability_disabled"
        assert "disabled" in report.log

    def test_missing_config_directory(self, settings, executor, site, sandbox):
        settings = settings.model_copy(update={"nginx_enabled": str(sandbox / "missing")})
        report = ProvisionOrchestrator(settings, executor).apply(site)
        assert report.failed_step == "preflight"
        assert report.error_kind == "config"
        assert "missing" in report.log

    def test_unmapped_runtime(self, orchestrator, site):
        report = orchestrator.apply(site.model_copy(update={"php_version": "5.6"}))
        assert report.failed_step == "preflight"
        assert report.error_kind == "validation"

    def test_source_path_revalidated(self, orchestrator, site, settings):
        os.rmdir(site.source_path)
        before = _hosts(settings)
        report = orchestrator.apply(site)
        assert report.failed_step == "preflight"
        assert report.error_kind == "validation"
        assert "does not exist" in report.log
        assert _hosts(settings) == before


class TestRemove:
    def test_remove_pipeline(self, orchestrator, settings, site, executor):
        orchestrator.provision(site)
        executor.reset()

        ok, log = orchestrator.deprovision(site)

        assert ok, log
        assert "demo.test" not in _hosts(settings)
        state = orchestrator.vhosts.inspect("demo.test")
        assert not state.enabled_exists
        assert not state.available_exists
        assert "nginx reloaded via:" in log
        assert not executor.ran("php8.1-fpm")

    def test_remove_steps(self, orchestrator, site):
        orchestrator.provision(site)
        report = orchestrator.remove(site)
        assert report.operation == "deprovision"
        assert report.step_names == REMOVE_STEPS

    def test_remove_never_provisioned(self, orchestrator, site, settings):
        before = _hosts(settings)
        ok, log = orchestrator.deprovision(site)
        assert ok, log
        assert _hosts(settings) == before

    def test_remove_does_not_need_source_path(self, orchestrator, site):
        orchestrator.provision(site)
        os.rmdir(site.source_path)
        ok, log = orchestrator.deprovision(site)
        assert ok, log

    def test_remove_keeps_foreign_hosts_lines(self, orchestrator, settings):
        Path(settings.hosts_file).write_text("192.168.1.10\tdemo.test\n")
        site = Site(domain="demo.test", php_version="8.1", source_path="/nowhere")
        ok, log = orchestrator.deprovision(site)
        assert ok, log
        assert _hosts(settings) == "192.168.1.10\tdemo.test\n"

    def test_remove_link_failure_stops(self, orchestrator, site, executor):
        orchestrator.provision(site)
        enabled = orchestrator.vhosts.enabled_path("demo.test")
        executor.set_failure(f"rm -f {enabled}")

        report = orchestrator.remove(site)

        assert report.failed_step == "delete_enabled_link"
        assert orchestrator.vhosts.inspect("demo.test").available_exists
