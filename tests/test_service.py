import asyncio

from conftest import load_resource
from trackhook.config import AppConfig
from trackhook.definitions import Argument, EventKind, SearchKind, SearchParam
from trackhook.models import parse_hook
from trackhook.service import WebhookService


def make_service(sample_config_data, tracker):
    return WebhookService(AppConfig.from_dict(sample_config_data), tracker=tracker)


def test_service_start_stop(sample_config_data, tracker):
    service = make_service(sample_config_data, tracker)

    async def run() -> None:
        service.start()
        assert service.worker_task is not None
        await asyncio.sleep(0)
        await service.stop()
        assert service.worker_task.done()

    asyncio.run(run())


def test_dispatched_event_is_processed_by_worker(sample_config_data, tracker):
    service = make_service(sample_config_data, tracker)
    hook = parse_hook(load_resource("merge_request_merged.json"))

    async def run() -> bool:
        service.start()
        queued = await service.dispatch(hook)
        await service.queue.join()
        await service.stop()
        return queued

    assert asyncio.run(run())
    assert tracker.searches == [[SearchParam(SearchKind.STATE, "Open")]]
    assert tracker.calls == [("transition", "BTS-1", "Fixed"), ("transition", "BTS-2", "Fixed")]


def test_events_without_bucket_are_ignored(sample_config_data, tracker):
    service = make_service(sample_config_data, tracker)
    payload = load_resource("merge_request_merged.json")
    payload["object_attributes"]["action"] = "close"

    assert not asyncio.run(service.dispatch(parse_hook(payload)))
    assert service.queue.empty()


def test_process_event_without_operations(sample_config_data, tracker):
    service = make_service(sample_config_data, tracker)
    results = asyncio.run(service.process_event(EventKind.ON_PIPELINE, "success", Argument.merged({})))
    assert results == []
    assert tracker.searches == []


def test_worker_survives_failing_events(sample_config_data, tracker):
    service = make_service(sample_config_data, tracker)
    calls = []

    async def flaky_process(kind, bucket, args):
        calls.append(bucket)
        if bucket == "failed":
            raise RuntimeError("boom")
        return []

    service.process_event = flaky_process

    async def run() -> None:
        service.start()
        await service.queue.put((EventKind.ON_PIPELINE, "failed", Argument.merged({})))
        await service.queue.put((EventKind.ON_PIPELINE, "success", Argument.merged({})))
        await service.queue.join()
        await service.stop()

    asyncio.run(run())
    assert calls == ["failed", "success"]
