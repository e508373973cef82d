from __future__ import annotations

import pytest

_ENVIRONMENT_KEYS = (
    "FIREBASE_API_KEY",
    "FIREBASE_PROJECT_ID",
    "FIREBASE_AUTH_DOMAIN",
    "LINKDOCTOR_CONFIG",
    "LINKDOCTOR_USE_EMULATOR",
    "LINKDOCTOR_EMULATOR_HOST",
    "LINKDOCTOR_PROBE_TIMEOUT",
    "LINKDOCTOR_LOG_MAX_BYTES",
    "LINKDOCTOR_LOG_BACKUP_COUNT",
    "LINKDOCTOR_RESOURCE_COLLECTIONS",
    "LINKDOCTOR_MAX_ATTEMPTS",
    "LINKDOCTOR_POLL_INTERVAL",
    "LINKDOCTOR_DEBUG",
    "LINKDOCTOR_LOG_LEVEL",
    "LINKDOCTOR_LOG_FORMAT",
    "LINKDOCTOR_LOG_FILE",
    "LINKDOCTOR_PASSWORD",
    "LINKDOCTOR_STATE_DIR",
    "LINKDOCTOR_ALLOW_INSECURE_TLS",
    "LINKDOCTOR_CA_BUNDLE",
    "DEBUG",
)


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("linkdoctor")
    group.addoption(
        "--offline",
        action="store_true",
        dest="linkdoctor_offline",
        help="Run offline tests only (deselect tests marked 'online').",
    )
    group.addoption(
        "--online-only",
        action="store_true",
        dest="linkdoctor_online_only",
        help="Run only tests marked 'online' (deselect offline).",
    )


def _is_integration_path(s: str) -> bool:
    s = s.replace("\\", "/")
    return s.startswith("tests/integration/") or "/tests/integration/" in s


def _mark_by_path(items: list[pytest.Item]) -> None:
    for item in items:
        node_str = str(getattr(item, "fspath", item.nodeid))
        marker = (
            pytest.mark.online
            if _is_integration_path(node_str)
            else pytest.mark.offline
        )
        item.add_marker(marker)


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    _mark_by_path(items)

    offline_only = bool(config.getoption("linkdoctor_offline"))
    online_only = bool(config.getoption("linkdoctor_online_only"))

    if offline_only and online_only:
        raise pytest.UsageError("--offline and --online-only are mutually exclusive")

    deselect: list[pytest.Item] = []
    if online_only:
        deselect = [i for i in items if "online" not in i.keywords]
    elif offline_only:
        deselect = [i for i in items if "online" in i.keywords]

    if not deselect:
        return

    config.hook.pytest_deselected(items=deselect)
    items[:] = [i for i in items if i not in deselect]


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENVIRONMENT_KEYS:
        monkeypatch.delenv(key, raising=False)
