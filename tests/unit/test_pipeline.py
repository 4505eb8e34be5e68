"""Tests for ImportPipeline."""

import asyncio
import itertools

import pytest

from installflow.core.diagnostics import OPERATION_END, OPERATION_START
from installflow.core.errors import BackendError, FatalInstallError, InstallInProgressError
from installflow.wizard.pipeline import ImportPipeline
from installflow.wizard.platforms import Platform
from installflow.wizard.progress import ProgressAggregator
from installflow.wizard.retry import StageStatus
from installflow.wizard.session import InstallSession

FEATURES = {"migration": True, "presets": True, "epic_login": True}


def _session(**overrides):
    s = InstallSession()
    s.platform = Platform.STEAM
    s.install_path = "C:/Steam/Game"
    s.release_tag = "v2.0.0"
    s.import_source_path = "C:/Old/Game"
    s.archive_path = "/tmp/a.snrdata"
    s.archive_password = "pw"
    for key, value in overrides.items():
        setattr(s, key, value)
    return s


def _pipeline(session, backend, catalog, confirm, bus, features=FEATURES):
    progress = ProgressAggregator(session, catalog)
    return ImportPipeline(
        session, backend, progress, catalog, confirm, features=features, bus=bus
    )


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "import_enabled,migration_enabled,s1_ok,s2_ok",
    list(itertools.product([False, True], repeat=4)),
)
async def test_stage_gating_table(
    backend, bus, catalog, make_confirmer, import_enabled, migration_enabled, s1_ok, s2_ok
):
    session = _session(
        import_enabled=import_enabled,
        migration_import_enabled=migration_enabled,
        preserved_save_data_available=True,
        restore_save_data=True,
    )
    answers = []
    if import_enabled and not s1_ok:
        backend.fail("import_save_data", BackendError("save data failed"))
        answers.append(False)
    if migration_enabled and not s2_ok:
        backend.fail("import_migration_archive", BackendError("archive failed"))
        answers.append(False)

    result = await _pipeline(session, backend, catalog, make_confirmer(*answers), bus).run()

    s1 = import_enabled and s1_ok
    s2 = migration_enabled and s2_ok
    assert backend.count("import_save_data") == int(import_enabled)
    assert backend.count("import_migration_archive") == int(migration_enabled)
    assert backend.count("merge_save_data_presets") == int(s1 and s2)
    assert backend.count("merge_preserved_presets") == int(s1 or s2)
    assert result.ran("save_data_preset_merge") == (s1 and s2)
    assert session.progress == 100.0


@pytest.mark.asyncio
async def test_base_call_gets_settings_and_restore_flag(backend, bus, catalog, make_confirmer):
    session = _session(preserved_save_data_available=True, restore_save_data=False)

    await _pipeline(session, backend, catalog, make_confirmer(), bus).run()

    assert backend.names()[:2] == ["apply_settings", "install"]
    update = backend.calls[0][1][0]
    assert update.install_path == "C:/Steam/Game"
    assert update.platform == Platform.STEAM
    assert update.release_tag == "v2.0.0"
    assert backend.calls[1][1] == ("v2.0.0", Platform.STEAM, False)


@pytest.mark.asyncio
async def test_install_failure_is_fatal_and_skips_stages(backend, bus, catalog, make_confirmer):
    backend.fail("install", BackendError("download failed: 404"))
    session = _session(import_enabled=True)

    with pytest.raises(FatalInstallError) as exc_info:
        await _pipeline(session, backend, catalog, make_confirmer(), bus).run()

    assert exc_info.value.message == "download failed: 404"
    assert backend.count("import_save_data") == 0
    assert not session.install_in_progress


@pytest.mark.asyncio
async def test_skip_reasons_accumulate_with_separator(backend, bus, catalog, make_confirmer):
    backend.fail("import_save_data", BackendError("first"))
    backend.fail("import_migration_archive", BackendError("second"))
    session = _session(import_enabled=True, migration_import_enabled=True)

    result = await _pipeline(session, backend, catalog, make_confirmer(False, False), bus).run()

    assert session.import_skipped_after_failure
    assert session.skip_reason == "first / second"
    assert result.skip_reason == "first / second"
    assert result.skipped == ["save_data_import", "migration_import"]


@pytest.mark.asyncio
async def test_skip_state_resets_each_run(backend, bus, catalog, make_confirmer):
    session = _session(import_enabled=True)
    session.mark_import_skipped("old")

    await _pipeline(session, backend, catalog, make_confirmer(), bus).run()

    assert not session.import_skipped_after_failure
    assert session.skip_reason is None


@pytest.mark.asyncio
async def test_retry_reruns_same_operation(backend, bus, catalog, make_confirmer):
    backend.fail("import_save_data", BackendError("busy"), BackendError("busy"))
    session = _session(import_enabled=True)
    confirm = make_confirmer(True, True)

    result = await _pipeline(session, backend, catalog, confirm, bus).run()

    assert result.outcomes["save_data_import"].status == StageStatus.SUCCEEDED
    assert result.outcomes["save_data_import"].attempts == 3
    assert backend.count("import_save_data") == 3
    assert session.skip_reason is None


@pytest.mark.asyncio
async def test_second_run_rejected_while_outstanding(backend, bus, catalog, make_confirmer):
    gate = backend.gate("install")
    session = _session()
    pipeline = _pipeline(session, backend, catalog, make_confirmer(), bus)

    first = asyncio.create_task(pipeline.run())
    await asyncio.sleep(0)
    assert session.install_in_progress

    with pytest.raises(InstallInProgressError):
        await pipeline.run()

    gate.set()
    await first
    assert backend.count("install") == 1
    assert not session.install_in_progress


@pytest.mark.asyncio
async def test_progress_pinned_during_stages(backend, bus, catalog, make_confirmer):
    seen = []
    session = _session(import_enabled=True)
    original = backend.import_save_data

    async def import_save_data(source_path):
        seen.append((session.progress, session.progress_message))
        return await original(source_path)

    backend.import_save_data = import_save_data
    backend.progress_events = [{"stage": "downloading", "progress": 40, "message": "dl"}]

    await _pipeline(session, backend, catalog, make_confirmer(), bus).run()

    assert seen == [(99.0, "Importing save data...")]
    assert session.progress == 100.0
    assert bus.subscriber_count("install-progress") == 0


@pytest.mark.asyncio
async def test_diagnostics_envelopes(backend, bus, catalog, make_confirmer):
    events = []
    bus.subscribe_all(lambda name, data: events.append((name, data)))
    session = _session(import_enabled=True)

    await _pipeline(session, backend, catalog, make_confirmer(), bus).run()

    ops = [(name, data["operation"]) for name, data in events if name.startswith("operation.")]
    assert ops == [
        (OPERATION_START, "install"),
        (OPERATION_END, "install"),
        (OPERATION_START, "save_data_import"),
        (OPERATION_END, "save_data_import"),
    ]
    end = [data for name, data in events if name == OPERATION_END][-1]
    assert end["data"]["status"] == "succeeded"
    assert end["timestamp"].endswith("Z")
