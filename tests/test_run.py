"""Tests for the run.py entry point."""

from unittest.mock import patch

import pytest

import run


class TestParseArgs:

    def test_defaults(self):
        args = run.parse_args([])
        assert args.namespace == ""
        assert args.dry_run is False
        assert args.in_cluster is False
        assert args.verbose is False
        assert args.resync_period == 600

    def test_flags(self):
        args = run.parse_args(["-n", "apps", "--dry-run", "--in-cluster", "-v", "--resync-period", "30"])
        assert args.namespace == "apps"
        assert args.dry_run is True
        assert args.in_cluster is True
        assert args.verbose is True
        assert args.resync_period == 30.0


class TestMain:

    def test_config_failure_exits(self):
        with patch("run.config.load_kube_config", side_effect=Exception("no kubeconfig")):
            with pytest.raises(SystemExit) as excinfo:
                run.main([])
        assert excinfo.value.code == 1

    def test_builds_and_runs_controller(self):
        with patch("run.config.load_incluster_config"), \
                patch("run.signal.signal") as signal_mock, \
                patch("run.AutoIngressController") as controller_cls:
            run.main(["--in-cluster", "--dry-run", "-n", "apps"])

        controller_cls.assert_called_once_with(namespace="apps", dry_run=True, resync_period=600)
        controller_cls.return_value.run.assert_called_once()
        signal_mock.assert_called_once()
