"""Tests for workerbundle.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from workerbundle.assets import ModulesAssets, ServiceWorkerAssets
from workerbundle.bindings import DurableObjectsClass, KvNamespace, PlainText
from workerbundle.config import BundleConfig, build_assets, load_config
from workerbundle.errors import ConfigError, ModuleConflictError, WorkerBundleError
from workerbundle.models import ModuleType
from workerbundle.modules import ModuleGlobs


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, BundleConfig)
    assert config.root == tmp_path.resolve()
    assert config.main is None
    assert config.format == "modules"
    assert config.upload_dir is None
    assert config.resolved_upload_dir == tmp_path.resolve()
    assert config.module_globs == ModuleGlobs()
    assert config.kv_namespaces == []
    assert config.migration is None


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / "workerbundle.yml"
    config_file.write_text(
        """
name: edge-worker
main: ./index.mjs
format: modules
upload_dir: dist
module_globs:
  esm: ["*.mjs", "*.js"]
  compiled_wasm:
    - "*.wasm"
kv_namespaces:
  - binding: CACHE
    id: 0f2ac74b498b48028cb68387c421e279
durable_objects:
  classes:
    - name: COUNTER
      class_name: Counter
    - name: CHAT
      class_name: ChatRoom
      script_name: chat-worker
vars:
  API_HOST: example.com
  RETRIES: 3
text_blobs:
  NOTES: notes.txt
wasm_modules:
  WASM: pkg/main.wasm
migrations:
  old_tag: v1
  new_tag: v2
  new_classes: [Counter]
  renamed_classes:
    - from: Room
      to: ChatRoom
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.name == "edge-worker"
    assert config.main == "./index.mjs"
    assert config.upload_dir == (tmp_path / "dist").resolve()
    assert config.module_globs.esm == ("*.mjs", "*.js")
    assert config.module_globs.compiled_wasm == ("*.wasm",)
    assert config.module_globs.cjs is None
    assert config.kv_namespaces == [
        KvNamespace(binding_name="CACHE", id="0f2ac74b498b48028cb68387c421e279")
    ]
    assert config.durable_object_classes == [
        DurableObjectsClass(binding_name="COUNTER", class_name="Counter"),
        DurableObjectsClass(binding_name="CHAT", class_name="ChatRoom", script_name="chat-worker"),
    ]
    assert config.plain_texts == [
        PlainText(binding_name="API_HOST", value="example.com"),
        PlainText(binding_name="RETRIES", value="3"),
    ]
    assert config.text_blobs[0].path == (tmp_path / "notes.txt").resolve()
    assert config.wasm_modules[0].binding_name == "WASM"
    assert config.migration is not None
    assert config.migration.to_dict() == {
        "old_tag": "v1",
        "new_tag": "v2",
        "new_classes": ["Counter"],
        "renamed_classes": [{"from": "Room", "to": "ChatRoom"}],
    }


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "format: rollup\n",
        "module_globs: ['*.js']\n",
        "module_globs:\n  wasm: ['*.wasm']\n",
        "module_globs:\n  esm: '*.mjs'\n",
        "kv_namespaces:\n  - binding: CACHE\n",
        "vars: [A, B]\n",
        "migrations: v2\n",
        "durable_objects:\n  - name: COUNTER\n    class_name: Counter\n",
        "migrations:\n  new_classes: Counter\n",
        "migrations:\n  new_classes: [[Counter]]\n",
        "migrations:\n  deleted_classes: [{name: Old}]\n",
        "main: [unclosed\n",
    ],
)
def test_load_config_rejects_invalid_content(tmp_path: Path, content: str) -> None:
    (tmp_path / "workerbundle.yml").write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_build_assets_for_modules_format(upload_builder) -> None:
    upload_builder.write(
        {
            "workerbundle.yml": """
            main: index.mjs
            upload_dir: dist
            module_globs:
              compiled_wasm: ["*.wasm"]
            kv_namespaces:
              - binding: CACHE
                id: abc
            """,
            "dist/index.mjs": "export default {}\n",
            "dist/lib/add.wasm": "\0asm",
            "dist/README.md": "# ignored\n",
        }
    )

    bundle = build_assets(load_config(upload_builder.path()))

    assert isinstance(bundle, ModulesAssets)
    assert bundle.main_module == "./index.mjs"
    assert sorted((module.name, module.module_type) for module in bundle.modules) == [
        ("./index.mjs", ModuleType.ESModule),
        ("./lib/add.wasm", ModuleType.CompiledWasm),
    ]
    assert [binding.name for binding in bundle.bindings()] == ["CACHE"]


def test_build_assets_requires_classified_main_module(upload_builder) -> None:
    upload_builder.write(
        {
            "workerbundle.yml": "main: worker.ts\n",
            "index.mjs": "export default {}\n",
        }
    )

    with pytest.raises(WorkerBundleError):
        build_assets(load_config(upload_builder.path()))


def test_build_assets_surfaces_conflicts(upload_builder) -> None:
    upload_builder.write(
        {
            "workerbundle.yml": """
            main: index.mjs
            module_globs:
              cjs: ["shared.js"]
              text: ["shared.js"]
            """,
            "index.mjs": "export default {}\n",
            "shared.js": "module.exports = 1\n",
        }
    )

    with pytest.raises(ModuleConflictError) as excinfo:
        build_assets(load_config(upload_builder.path()))

    assert "shared.js" in str(excinfo.value)


def test_build_assets_for_service_worker_format(upload_builder) -> None:
    upload_builder.write(
        {
            "workerbundle.yml": """
            main: dist/worker.js
            format: service-worker
            wasm_modules:
              WASM: pkg/main.wasm
            vars:
              MODE: prod
            """,
        }
    )

    bundle = build_assets(load_config(upload_builder.path()))

    assert isinstance(bundle, ServiceWorkerAssets)
    assert bundle.script_name == "worker"
    assert [binding.kind for binding in bundle.bindings()] == ["wasm_module", "plain_text"]


def test_build_assets_requires_main(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        build_assets(load_config(tmp_path))
