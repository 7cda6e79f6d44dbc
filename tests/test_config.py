"""Tests for DGR settings resolution."""

import pytest

from dgr.config import DGRSettings
from dgr.exceptions import ConfigurationError


def test_from_env_defaults():
    """Test that an empty environment disables DGR with default tunables."""
    settings = DGRSettings.from_env({})

    assert settings.mode is None
    assert not settings.is_master
    assert not settings.is_slave
    assert settings.first_receive_timeout == 10.0
    assert settings.staleness_window == 15.0
    assert settings.max_records == 1024
    assert settings.max_packet_bytes == 1024 * 1024


def test_from_env_master():
    settings = DGRSettings.from_env({
        "DGR_MODE": "master",
        "DGR_MASTER_DEST_IP": "10.0.1.255",
        "DGR_MASTER_DEST_PORT": "5000",
    })

    assert settings.is_master
    assert settings.master_dest_ip == "10.0.1.255"
    assert settings.master_dest_port == 5000


def test_from_env_slave_with_tunables():
    settings = DGRSettings.from_env({
        "DGR_MODE": "slave",
        "DGR_SLAVE_LISTEN_PORT": "5001",
        "DGR_FIRST_RECEIVE_TIMEOUT": "30",
        "DGR_STALENESS_WINDOW": "5.5",
        "DGR_MAX_RECORDS": "16",
    })

    assert settings.is_slave
    assert settings.slave_listen_port == 5001
    assert settings.first_receive_timeout == 30.0
    assert settings.staleness_window == 5.5
    assert settings.max_records == 16


def test_from_env_empty_values_are_unset():
    settings = DGRSettings.from_env({"DGR_MODE": "master", "DGR_MASTER_DEST_IP": ""})

    assert settings.master_dest_ip is None


def test_from_env_reads_os_environ(monkeypatch):
    monkeypatch.setenv("DGR_MODE", "slave")
    monkeypatch.setenv("DGR_SLAVE_LISTEN_PORT", "6000")

    settings = DGRSettings.from_env()

    assert settings.is_slave
    assert settings.slave_listen_port == 6000


def test_unknown_mode_is_not_a_role():
    settings = DGRSettings.from_env({"DGR_MODE": "Master"})

    assert not settings.is_master
    assert not settings.is_slave


@pytest.mark.parametrize("env", [
    {"DGR_MASTER_DEST_PORT": "not-a-port"},
    {"DGR_MASTER_DEST_PORT": "70000"},
    {"DGR_MASTER_DEST_PORT": "0"},
    {"DGR_SLAVE_LISTEN_PORT": "-1"},
    {"DGR_STALENESS_WINDOW": "0"},
    {"DGR_MAX_RECORDS": "-5"},
])
def test_invalid_values_raise_configuration_error(env):
    with pytest.raises(ConfigurationError):
        DGRSettings.from_env(env)


def test_listen_port_zero_is_ephemeral():
    settings = DGRSettings.from_env({"DGR_MODE": "slave", "DGR_SLAVE_LISTEN_PORT": "0"})

    assert settings.slave_listen_port == 0
