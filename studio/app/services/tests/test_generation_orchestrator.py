import asyncio
import itertools

from studio.app.domain.generation import FormState, GenerationResult, ReferenceImage
from studio.app.ports.generation_api import GenerationApiError
from studio.app.services.generation_orchestrator import (
    FAILED_MESSAGE,
    PROMPT_REQUIRED_MESSAGE,
    SUCCESS_MESSAGE,
    GenerationOrchestrator,
    GenerationStatus,
    OrchestratorRegistry,
    build_request_payload,
)


class FakeApi:
    def __init__(self, result=None, error=None):
        self.result = result or GenerationResult()
        self.error = error
        self.calls = []

    async def generate(self, *, fields, files, request_id):
        self.calls.append({"fields": fields, "files": files, "request_id": request_id})
        if self.error is not None:
            raise self.error
        return self.result


class GatedApi:
    """Each call blocks until its gate is opened; exception results are raised."""

    def __init__(self, results):
        self.results = results
        self.gates = []

    async def generate(self, *, fields, files, request_id):
        gate = asyncio.Event()
        idx = len(self.gates)
        self.gates.append(gate)
        await gate.wait()
        result = self.results[idx]
        if isinstance(result, Exception):
            raise result
        return result


def _clock():
    ticks = itertools.count(start=1_000, step=2_500)
    return lambda: next(ticks)


def _form(**kwargs):
    base = {"provider": "veo-2", "prompt": "a neon market in the rain"}
    base.update(kwargs)
    return FormState(**base)


def test_empty_prompt_is_rejected_without_request():
    api = FakeApi()
    orch = GenerationOrchestrator(api)
    status = asyncio.run(orch.submit(_form(prompt="   ")))
    assert status == GenerationStatus.IDLE
    assert orch.status == GenerationStatus.IDLE
    assert orch.message == PROMPT_REQUIRED_MESSAGE
    assert orch.meta is None
    assert api.calls == []


def test_success_records_videos_cost_and_timing():
    api = FakeApi(result=GenerationResult(videos=["a.mp4", "b.mp4"], cost=1.50))
    orch = GenerationOrchestrator(api, clock=_clock())
    status = asyncio.run(orch.submit(_form()))
    assert status == GenerationStatus.SUCCEEDED
    assert orch.videos == ["a.mp4", "b.mp4"]
    assert orch.meta.cost == 1.50
    assert orch.meta.provider == "veo-2"
    assert orch.meta.started_at == 1_000
    assert orch.meta.completed_at == 3_500
    assert orch.meta.elapsed_seconds == 2
    assert "$1.50" in orch.message


def test_success_without_cost_uses_plain_message():
    api = FakeApi(result=GenerationResult(videos=["a.mp4"], provider="veo-2-vertex"))
    orch = GenerationOrchestrator(api)
    asyncio.run(orch.submit(_form()))
    assert orch.message == SUCCESS_MESSAGE
    assert orch.meta.cost is None
    assert orch.meta.provider == "veo-2-vertex"


def test_api_error_moves_to_failed_and_can_resubmit():
    api = FakeApi(error=GenerationApiError("generation_http_error", "Failed to generate video"))
    orch = GenerationOrchestrator(api, clock=_clock())
    status = asyncio.run(orch.submit(_form()))
    assert status == GenerationStatus.FAILED
    assert orch.message == FAILED_MESSAGE
    assert orch.meta.error == "Failed to generate video"
    assert orch.meta.completed_at is not None
    assert orch.videos == []

    api.error = None
    api.result = GenerationResult(videos=["c.mp4"])
    assert asyncio.run(orch.submit(_form())) == GenerationStatus.SUCCEEDED
    assert orch.meta.error is None
    assert orch.videos == ["c.mp4"]


def test_unexpected_exception_is_a_failure():
    orch = GenerationOrchestrator(FakeApi(error=RuntimeError("boom")))
    assert asyncio.run(orch.submit(_form())) == GenerationStatus.FAILED
    assert orch.meta.error == "boom"


def test_new_submission_clears_previous_videos():
    api = FakeApi(result=GenerationResult(videos=["old.mp4"]))
    orch = GenerationOrchestrator(api)
    asyncio.run(orch.submit(_form()))
    api.error = GenerationApiError("generation_request_failed", "Failed to generate video")
    asyncio.run(orch.submit(_form()))
    assert orch.videos == []


def test_stale_response_does_not_overwrite_newer_one():
    api = GatedApi(
        [
            GenerationResult(videos=["first.mp4"]),
            GenerationResult(videos=["second.mp4"]),
        ]
    )
    orch = GenerationOrchestrator(api)

    async def scenario():
        first = asyncio.create_task(orch.submit(_form(prompt="first")))
        await asyncio.sleep(0)
        second = asyncio.create_task(orch.submit(_form(prompt="second")))
        await asyncio.sleep(0)
        assert orch.status == GenerationStatus.SUBMITTING
        api.gates[1].set()
        await second
        api.gates[0].set()
        await first

    asyncio.run(scenario())
    assert orch.status == GenerationStatus.SUCCEEDED
    assert orch.videos == ["second.mp4"]


def test_stale_failure_does_not_overwrite_newer_success():
    api = GatedApi(
        [
            GenerationApiError("generation_http_error", "Failed to generate video"),
            GenerationResult(videos=["second.mp4"], cost=0.4),
        ]
    )
    orch = GenerationOrchestrator(api)

    async def scenario():
        first = asyncio.create_task(orch.submit(_form(prompt="first")))
        await asyncio.sleep(0)
        second = asyncio.create_task(orch.submit(_form(prompt="second")))
        await asyncio.sleep(0)
        api.gates[1].set()
        await second
        api.gates[0].set()
        await first

    asyncio.run(scenario())
    assert orch.status == GenerationStatus.SUCCEEDED
    assert orch.videos == ["second.mp4"]
    assert orch.meta.error is None
    assert orch.meta.cost == 0.4
    assert "$0.40" in orch.message


def test_payload_for_generic_provider():
    form = _form(
        negative_prompt="blur",
        number_of_videos=2,
        aspect_ratio="9:16",
        duration_seconds=6,
        reference_image=ReferenceImage(filename="ref.png", content_type="image/png", data=b"img"),
    )
    fields, files = build_request_payload(form)
    assert fields == {
        "prompt": "a neon market in the rain",
        "negativePrompt": "blur",
        "numberOfVideos": "2",
        "aspectRatio": "9:16",
        "durationSeconds": "6",
        "provider": "veo-2",
    }
    assert files == {"conditioningImage": ("ref.png", b"img", "image/png")}


def test_payload_adds_veo3_options_only_for_veo3():
    fields, files = build_request_payload(_form(provider="veo-3", duration_seconds=8))
    assert fields["veo3Model"] == "veo3-fast"
    assert fields["veo3Resolution"] == "720p"
    assert fields["veo3Audio"] == "true"
    assert "resolution" not in fields
    assert files == {}

    fields, _ = build_request_payload(_form(provider="luma-ray-2", resolution="720p"))
    assert "veo3Model" not in fields
    assert fields["resolution"] == "720p"


def test_payload_includes_fps_when_supported():
    fields, _ = build_request_payload(_form(provider="hailuo-02", fps=30))
    assert fields["fps"] == "30"
    fields, _ = build_request_payload(_form(provider="veo-2", fps=30))
    assert "fps" not in fields


def test_snapshot_shape():
    orch = GenerationOrchestrator(FakeApi(result=GenerationResult(videos=["a.mp4"], cost=0.4)), clock=_clock())
    asyncio.run(orch.submit(_form()))
    snap = orch.snapshot()
    assert snap["status"] == "succeeded"
    assert snap["videos"] == ["a.mp4"]
    assert snap["meta"]["cost"] == 0.4
    assert snap["meta"]["elapsedSeconds"] == 2


def test_registry_keeps_one_orchestrator_per_user():
    registry = OrchestratorRegistry(FakeApi)
    a = registry.get("user-a")
    assert registry.get("user-a") is a
    assert registry.get("user-b") is not a
    registry.discard("user-a")
    assert registry.peek("user-a") is None


def test_registry_keeps_attached_image_until_discarded():
    registry = OrchestratorRegistry(FakeApi)
    image = ReferenceImage(filename="ref.png", content_type="image/png", data=b"img")
    registry.attach_image("user-a", image)
    assert registry.attached_image("user-a") is image
    assert registry.attached_image("user-b") is None

    registry.attach_image("user-a", None)
    assert registry.attached_image("user-a") is None

    registry.attach_image("user-a", image)
    registry.get("user-a")
    registry.discard("user-a")
    assert registry.attached_image("user-a") is None
    assert registry.peek("user-a") is None
