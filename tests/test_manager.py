"""Tests for the KnowledgeManager lifecycle and the service front."""

import pytest
import yaml

from skill_transfer.config.resolver import resolve_config
from skill_transfer.core.types import Point
from skill_transfer.engine import manager as manager_module
from skill_transfer.engine.manager import KnowledgeManager
from skill_transfer.engine.state import LifecycleState
from skill_transfer.errors import ConfigError, DetectionError, LifecycleError, LoadError
from skill_transfer.service.front import (
    GET_MOTION_SPEC,
    GET_TASK_SPEC,
    GetMotionSpecRequest,
    KnowledgeService,
)


class TestLifecycle:
    def test_construction_reaches_initialized(self, workspace, detector):
        manager = KnowledgeManager(workspace.config(), detector=detector)
        assert manager.state is LifecycleState.INITIALIZED
        assert manager.service is None
        assert detector.calls == []

    def test_start_acquires_then_ready(self, workspace, detector):
        manager = KnowledgeManager(workspace.config(), detector=detector)
        service = manager.start()

        assert manager.state is LifecycleState.READY
        assert isinstance(service, KnowledgeService)
        assert manager.service is service
        assert len(detector.calls) == 3
        assert manager.store.feature_point("cup", "rim") == Point(1.0, 2.0, 3.0)

    def test_service_is_registered_only_once_ready(self, workspace, detector, monkeypatch):
        states_at_registration = []

        class RecordingService(KnowledgeService):
            def __init__(self, manager):
                states_at_registration.append(manager.state)
                super().__init__(manager)

        monkeypatch.setattr(manager_module, "KnowledgeService", RecordingService)
        service = KnowledgeManager(workspace.config(), detector=detector).start()

        assert isinstance(service, RecordingService)
        assert states_at_registration == [LifecycleState.READY]
        assert service.get_task_spec().motion_phase_count == 2

    def test_start_twice_is_contract_violation(self, workspace, detector):
        manager = KnowledgeManager(workspace.config(), detector=detector)
        manager.start()
        with pytest.raises(LifecycleError):
            manager.start()

    def test_compose_before_ready_is_contract_violation(self, workspace, detector):
        manager = KnowledgeManager(workspace.config(), detector=detector)
        with pytest.raises(LifecycleError):
            manager.compose(0)
        with pytest.raises(LifecycleError):
            manager.motion_phase_count()

    def test_detection_failure_blocks_ready(self, workspace, detector):
        detector.fail_on.add(("spoon", "tip"))
        manager = KnowledgeManager(workspace.config(), detector=detector)

        with pytest.raises(DetectionError):
            manager.start()
        assert manager.state is LifecycleState.OBTAINING_KNOWLEDGE
        assert manager.service is None
        with pytest.raises(LifecycleError):
            manager.compose(0)

    def test_missing_document_is_fatal(self, workspace, detector):
        workspace.setup.unlink()
        with pytest.raises(LoadError):
            KnowledgeManager(workspace.config(), detector=detector)

    def test_missing_template_parameter_aborts_before_service(self, workspace):
        params = {
            "task_file_path": str(workspace.task),
            "setup_file_path": str(workspace.setup),
            "motion_directory_path": str(workspace.motions),
        }
        with pytest.raises(ConfigError) as ei:
            KnowledgeManager(resolve_config(cli_params=params, environ={}))
        assert ei.value.parameter == "motion_template_file_path"


@pytest.fixture
def service(workspace, detector) -> KnowledgeService:
    return KnowledgeManager(workspace.config(), detector=detector).start()


class TestService:
    def test_get_task_spec(self, service):
        assert service.get_task_spec().motion_phase_count == 2

    def test_get_motion_spec(self, service):
        resp = service.get_motion_spec(GetMotionSpecRequest(index=0))

        assert resp.ok
        assert resp.stop_condition.contact is True
        spec = yaml.safe_load(resp.spec)
        assert [list(e)[0] for e in spec["scope"]] == ["tool-grasp", "target-object-grasp", "T", "A"]

    def test_failed_request_has_no_spec_and_service_continues(self, service):
        bad = service.get_motion_spec(GetMotionSpecRequest(index=7))
        assert not bad.ok
        assert bad.spec == ""
        assert bad.stop_condition is None
        assert bad.to_dict()["error"]["kind"] == "InvalidIndex"

        good = service.get_motion_spec(GetMotionSpecRequest(index=1))
        assert good.ok

    def test_handle_dispatch(self, service):
        assert service.handle(GET_TASK_SPEC) == {"ok": True, "motion_phase_count": 2}

        out = service.handle(GET_MOTION_SPEC, {"index": 1})
        assert out["ok"] is True
        assert out["stop_condition"] == {
            "measured_velocity_min": 0.01,
            "desired_velocity_min": 0.02,
            "contact": False,
            "activation_distance": 1.0,
        }

    @pytest.mark.parametrize("payload", [{}, {"index": "0"}, {"index": True}])
    def test_handle_rejects_bad_index(self, service, payload):
        out = service.handle(GET_MOTION_SPEC, payload)
        assert out["ok"] is False
        assert out["error"]["kind"] == "InvalidIndex"

    def test_handle_unknown_request(self, service):
        with pytest.raises(KeyError):
            service.handle("get_everything")
