from unittest.mock import patch

from fastapi import FastAPI
from fastapi.testclient import TestClient

from sharectl.api.routers.systemd import router
from sharectl.errors import ServiceError
from sharectl.systemd.models import SystemdServiceStatus

STATUS = SystemdServiceStatus(
    name="nfs", unit="nfs-server.service", load_state="loaded",
    active_state="active", sub_state="exited", unit_file_state="enabled",
)


def _client():
    app = FastAPI()
    app.include_router(router)
    return TestClient(app)


@patch("sharectl.api.routers.systemd.SystemdManager")
def test_list_services(MockManager):
    MockManager.return_value.list_services.return_value = [STATUS]
    response = _client().get("/services")
    assert response.status_code == 200
    assert response.json()["data"][0]["unit"] == "nfs-server.service"


@patch("sharectl.api.routers.systemd.SystemdManager")
def test_get_unknown_service(MockManager):
    MockManager.return_value.get_service_status.return_value = None
    response = _client().get("/services/ssh")
    assert response.status_code == 404


@patch("sharectl.api.routers.systemd.SystemdManager")
def test_manage_service(MockManager):
    MockManager.return_value.manage_service.return_value = STATUS
    response = _client().post("/services/nfs/restart")
    assert response.status_code == 200
    MockManager.return_value.manage_service.assert_called_once_with("nfs", "restart")


@patch("sharectl.api.routers.systemd.SystemdManager")
def test_manage_service_errors(MockManager):
    MockManager.return_value.manage_service.side_effect = ValueError("Invalid action: explode")
    assert _client().post("/services/nfs/explode").status_code == 400

    MockManager.return_value.manage_service.side_effect = ServiceError("Service smb not found or not installed.")
    assert _client().post("/services/smb/start").status_code == 502


@patch("sharectl.systemd.manager.subprocess.run")
def test_unit_names_are_not_service_keys(mock_run):
    mock_run.return_value.stdout = "LoadState=loaded\n"
    assert _client().get("/services/nfs-server.service").status_code == 404
    mock_run.assert_not_called()
