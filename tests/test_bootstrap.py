import json
import os
import tempfile
import unittest
from pathlib import Path

import yaml

from perdia.backfill.repository import RestArticleRepository, SQLiteArticleRepository
from perdia.catalog.accessor import SQLiteProgramCatalog
from perdia.catalog.rest import RestProgramCatalog
from perdia.pipeline.bootstrap import bootstrap_runtime

PROJECT_ROOT = Path(__file__).resolve().parents[1]


class BootstrapRuntimeTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.repo_root = Path(self._tmp.name).resolve()
        self._key_backup = os.environ.get("PERDIA_CATALOG_API_KEY")
        self.addCleanup(self._restore_key)

    def _restore_key(self) -> None:
        if self._key_backup is None:
            os.environ.pop("PERDIA_CATALOG_API_KEY", None)
        else:
            os.environ["PERDIA_CATALOG_API_KEY"] = self._key_backup

    def _write_config(self, data: dict) -> Path:
        path = self.repo_root / "config" / "monetization.yaml"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    def test_defaults_without_config_file(self) -> None:
        ctx = bootstrap_runtime(repo_root=self.repo_root)
        self.addCleanup(ctx.close)

        self.assertIsInstance(ctx.catalog, SQLiteProgramCatalog)
        self.assertIsInstance(ctx.articles, SQLiteArticleRepository)
        self.assertEqual(ctx.paths.output_dir, self.repo_root / "outputs")
        self.assertEqual(ctx.settings.catalog.sqlite_path, self.repo_root / "outputs" / "catalog" / "catalog.sqlite")
        self.assertTrue(ctx.settings.catalog.sqlite_path.exists())
        self.assertIsNotNone(ctx.provenance)
        events = ctx.provenance.output_path.read_text(encoding="utf-8").splitlines()
        self.assertEqual(json.loads(events[0])["stage"], "bootstrap")

    def test_config_file_settings_reach_engine_and_validator(self) -> None:
        self._write_config(
            {
                "engine": {"maxProgramsPerSchool": 1},
                "renderer": {"picks_header": "Top Schools"},
                "compliance": {"legacy_shortcode_severity": "minor"},
                "catalog": {"sqlite_path": "data/local.sqlite"},
            }
        )
        ctx = bootstrap_runtime(repo_root=self.repo_root, enable_audit=False)
        self.addCleanup(ctx.close)

        self.assertEqual(ctx.engine.config.max_programs_per_school, 1)
        self.assertEqual(ctx.engine.ranker.config.max_programs_per_school, 1)
        self.assertEqual(ctx.engine.renderer.picks_header, "Top Schools")
        self.assertEqual(ctx.validator.config.legacy_shortcode_severity, "minor")
        self.assertEqual(ctx.settings.catalog.sqlite_path, self.repo_root / "data" / "local.sqlite")
        self.assertIsNone(ctx.provenance)

    def test_catalog_override_forces_sqlite(self) -> None:
        self._write_config({"catalog": {"backend": "rest", "api_base": "https://catalog.test"}})
        override = self.repo_root / "override.sqlite"

        ctx = bootstrap_runtime(repo_root=self.repo_root, catalog_override=override, enable_audit=False)
        self.addCleanup(ctx.close)

        self.assertEqual(ctx.settings.catalog.backend, "sqlite")
        self.assertEqual(ctx.catalog.store.db_path, override)

    def test_rest_backend_records_env_presence_only(self) -> None:
        self._write_config({"catalog": {"backend": "rest", "api_base": "https://catalog.test"}})
        os.environ["PERDIA_CATALOG_API_KEY"] = "super-secret"

        ctx = bootstrap_runtime(repo_root=self.repo_root, enable_audit=False)
        self.addCleanup(ctx.close)

        self.assertIsInstance(ctx.catalog, RestProgramCatalog)
        self.assertIsInstance(ctx.articles, RestArticleRepository)
        self.assertEqual(ctx.env, {"PERDIA_CATALOG_API_KEY": "set"})

    def test_explicit_missing_config_raises(self) -> None:
        with self.assertRaises(FileNotFoundError):
            bootstrap_runtime(self.repo_root / "missing.yaml", repo_root=self.repo_root)

    def test_repository_config_sample_loads(self) -> None:
        ctx = bootstrap_runtime(
            PROJECT_ROOT / "config" / "monetization.yaml",
            repo_root=self.repo_root,
            enable_audit=False,
        )
        self.addCleanup(ctx.close)

        self.assertEqual(ctx.settings.engine.min_programs_required, 3)
        self.assertEqual(ctx.settings.catalog.sqlite_path, self.repo_root / "outputs" / "catalog" / "catalog.sqlite")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
