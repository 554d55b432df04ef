from __future__ import annotations

from pathlib import Path

import pytest

from clementine.primitives import BareProjectConfig, QueueFeatureConfig, QueuesPrimitive, WorkerOnlyPrimitive
from clementine.primitives.base import TemplateError, render_template
from clementine.settings import Settings, load_settings
from conftest import DEFAULT, FakeToolchain, ScriptedPrompter, write


def _config(**overrides: object) -> QueueFeatureConfig:
    values: dict = {"queue_name": "orders", "binding_name": "ORDERS_QUEUE", "project_name": "shop"}
    values.update(overrides)
    return QueueFeatureConfig(**values)


def test_render_template_substitutes_tokens() -> None:
    text = render_template("worker.ts.tmpl", {"BINDING_NAME": "ORDERS_QUEUE", "QUEUE_NAME": "orders"})
    assert "ORDERS_QUEUE: Queue;" in text
    assert "env.ORDERS_QUEUE.send(" in text
    assert '"orders"' in text
    assert "__" not in text


def test_render_template_requires_every_token() -> None:
    with pytest.raises(TemplateError, match="BINDING_NAME"):
        render_template("worker.ts.tmpl", {"QUEUE_NAME": "orders"})
    with pytest.raises(TemplateError):
        render_template("missing.tmpl")


def test_static_templates_have_no_tokens() -> None:
    assert "export class EventStore" in render_template("event-store.ts.tmpl")
    assert "Enqueue Message" in render_template("dashboard.html.tmpl")


def test_prompt_new_collects_defaults(settings: Settings) -> None:
    prompter = ScriptedPrompter([DEFAULT, DEFAULT, DEFAULT])
    config = QueuesPrimitive(settings=settings).prompt_new(prompter)
    assert config == QueueFeatureConfig(
        queue_name="demo-queue",
        binding_name="DEMO_QUEUE",
        project_name="my-queue-worker",
    )
    assert prompter.asked == ["Project name?", "Queue name?", "Binding name?"]


def test_prompt_cancellation_stops_asking(settings: Settings) -> None:
    prompter = ScriptedPrompter(["shop", None])
    assert QueuesPrimitive(settings=settings).prompt_new(prompter) is None
    assert prompter.answers == []


def test_prompt_existing_has_no_project_name(settings: Settings) -> None:
    config = QueuesPrimitive(settings=settings).prompt_existing(ScriptedPrompter(["orders", "ORDERS_QUEUE"]))
    assert config is not None
    assert config.project_name is None
    assert config.kind == "queues"


def test_queue_config_uses_settings_defaults(tmp_path: Path) -> None:
    write(tmp_path / ".clementine.yaml", "queues:\n  defaults:\n    max_batch_size: 10\n")
    settings = load_settings(tmp_path, environ={})
    config = QueuesPrimitive(settings=settings).prompt_existing(ScriptedPrompter(["orders", "ORDERS_QUEUE"]))
    assert config is not None
    assert (config.max_batch_size, config.max_batch_timeout, config.max_retries) == (10, 3, 3)


def test_generate_new_project_replaces_entry(settings: Settings, tmp_path: Path) -> None:
    write(tmp_path / "src" / "index.ts", "export default {};\n")
    QueuesPrimitive(settings=settings).generate_files(tmp_path, _config(), into_existing=False)

    assert "ORDERS_QUEUE: Queue;" in (tmp_path / "src" / "index.ts").read_text(encoding="utf-8")
    assert (tmp_path / "src" / "event-store.ts").is_file()
    assert (tmp_path / "src" / "dashboard.html").is_file()
    assert not (tmp_path / "src" / "queue-handler.ts").exists()


def test_generate_existing_project_never_touches_entry(settings: Settings, tmp_path: Path, capsys) -> None:
    write(tmp_path / "src" / "index.ts", "// mine\n")
    write(tmp_path / "src" / "dashboard.html", "custom")
    write(tmp_path / "src" / "queue-handler.ts", "stale")

    QueuesPrimitive(settings=settings).generate_files(tmp_path, _config(), into_existing=True)

    src = tmp_path / "src"
    assert (src / "index.ts").read_text(encoding="utf-8") == "// mine\n"
    assert (src / "dashboard.html").read_text(encoding="utf-8") == "custom"
    assert "ORDERS_QUEUE" in (src / "queue-handler.ts").read_text(encoding="utf-8")
    assert (src / "event-store.ts").is_file()
    out = capsys.readouterr().out
    assert "dashboard.html already exists, skipping" in out
    assert "queue-handler.ts, event-store.ts" in out


def test_generate_rejects_foreign_config(settings: Settings, tmp_path: Path) -> None:
    with pytest.raises(TypeError):
        QueuesPrimitive(settings=settings).generate_files(
            tmp_path, BareProjectConfig(project_name="x"), into_existing=False
        )


def test_pre_deploy_failure_is_a_warning(settings: Settings, tmp_path: Path, capsys) -> None:
    toolchain = FakeToolchain(queue_ok=False)
    QueuesPrimitive(settings=settings).pre_deploy_steps(tmp_path, _config(), toolchain=toolchain)
    assert toolchain.calls == [("create_queue", tmp_path, "orders")]
    out = capsys.readouterr().out
    assert "Queue creation failed (it might already exist)" in out
    assert "Continuing with deployment..." in out


def test_queue_presentation_hooks(settings: Settings) -> None:
    primitive = QueuesPrimitive(settings=settings)
    config = _config()
    assert primitive.deploy_later_commands(config) == ["npx wrangler queues create orders"]
    assert primitive.resource_reminder(config) == (
        "Remember to create the queue before deploying: npx wrangler queues create orders"
    )
    steps = primitive.integration_steps(config)
    assert "   ORDERS_QUEUE: Queue;" in steps
    assert "   export { EventStore };" in steps
    info = primitive.get_deployment_info(config)
    assert info.success_message == "🎉 Your queue worker is live!"
    assert info.next_steps[0] == "Open http://localhost:8787 in your browser to view the live dashboard"


def test_worker_only_primitive(settings: Settings, tmp_path: Path) -> None:
    primitive = WorkerOnlyPrimitive(settings=settings)
    config = primitive.prompt_new(ScriptedPrompter([DEFAULT]))
    assert config == BareProjectConfig(project_name="my-worker")
    primitive.generate_files(tmp_path, config, into_existing=False)
    assert list(tmp_path.iterdir()) == []
    assert primitive.get_deployment_info(config).success_message == "🎉 Your worker is live!"
