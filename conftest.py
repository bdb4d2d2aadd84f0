import pytest


def _docker_available() -> bool:
    try:
        import docker

        docker.from_env().ping()
        return True
    except Exception:
        return False


def pytest_collection_modifyitems(config, items):
    docker_items = [item for item in items if item.get_closest_marker("docker")]
    if not docker_items or _docker_available():
        return

    skip = pytest.mark.skip(reason="Docker daemon not reachable")
    for item in docker_items:
        item.add_marker(skip)
