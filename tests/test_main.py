import threading

import pytest

from skyactuator import main as main_module
from skyactuator.core import DEFAULT_POLL_INTERVAL_SECONDS, TERMINATION_ENDPOINT_URL
from skyactuator.errors import TerminationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("NODE_NAME", raising=False)
    monkeypatch.delenv("NAMESPACE", raising=False)


def test_parse_config_defaults():
    config, verbosity = main_module.parse_config(["--node-name", "worker-a"])

    assert config.node_name == "worker-a"
    assert config.poll_interval == DEFAULT_POLL_INTERVAL_SECONDS
    assert config.endpoint_url == TERMINATION_ENDPOINT_URL
    assert config.kubeconfig is None
    assert verbosity == 0


def test_parse_config_node_name_from_env(monkeypatch):
    monkeypatch.setenv("NODE_NAME", "worker-b")

    config, verbosity = main_module.parse_config(["-vv", "--poll-interval", "2.5"])

    assert config.node_name == "worker-b"
    assert config.poll_interval == 2.5
    assert verbosity == 2


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["--node-name", "worker-a", "--poll-interval", "0"],
        ["--node-name", "worker-a", "--poll-interval", "-1"],
    ],
)
def test_parse_config_rejects_invalid(argv):
    with pytest.raises(SystemExit) as excinfo:
        main_module.parse_config(argv)

    assert excinfo.value.code == 2


def test_main_wires_handler(mocker):
    get_api = mocker.patch.object(main_module, "get_core_v1_api")
    handler_cls = mocker.patch.object(main_module, "TerminationHandler")
    mocker.patch.object(main_module.signal, "signal")

    main_module.main(["--node-name", "worker-a", "--kubeconfig", "/tmp/kubeconfig"])

    get_api.assert_called_once_with("/tmp/kubeconfig")
    kwargs = handler_cls.call_args.kwargs
    assert kwargs["node_name"] == "worker-a"
    assert kwargs["node_store"].core_v1 is get_api.return_value
    stop = handler_cls.return_value.run.call_args.args[0]
    assert isinstance(stop, threading.Event)


def test_main_exits_on_handler_error(mocker):
    mocker.patch.object(main_module, "get_core_v1_api")
    handler_cls = mocker.patch.object(main_module, "TerminationHandler")
    handler_cls.return_value.run.side_effect = TerminationError("boom")
    mocker.patch.object(main_module.signal, "signal")

    with pytest.raises(SystemExit) as excinfo:
        main_module.main(["--node-name", "worker-a"])

    assert excinfo.value.code == 1


def test_version_flag(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main_module.parse_config(["--version"])

    assert excinfo.value.code == 0
    assert capsys.readouterr().out.startswith("skyactuator v")
