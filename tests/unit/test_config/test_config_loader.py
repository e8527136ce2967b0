# SPDX-License-Identifier: LGPL-3.0-or-later
"""
Unit Tests for configuration loading

Tests YAML/JSON configuration file loading and merging.
"""

import argparse
import json
import logging
import tempfile
import unittest
from pathlib import Path

from vsbuild.config.config_loader import Config
from vsbuild.core.exceptions import Fatal

LOG = logging.getLogger("vsbuild.test.config")


class TestConfigLoading(unittest.TestCase):
    def test_yaml_clouds_and_job(self):
        with tempfile.TemporaryDirectory() as td:
            cfg = Path(td) / "job.yaml"
            cfg.write_text(
                """
clouds:
  - name: vc-east
    host: vcenter-east.example.com
    password_env: VC_EAST_PASSWORD
job:
  server: ${VSPHERE_CLOUD_NAME}
  step:
    type: connection_check
""",
                encoding="utf-8",
            )
            conf = Config.load_many(LOG, Config.expand_configs(LOG, [str(cfg)]))

        self.assertEqual(conf["clouds"][0]["name"], "vc-east")
        self.assertEqual(conf["job"]["server"], "${VSPHERE_CLOUD_NAME}")
        self.assertEqual(conf["job"]["step"]["type"], "connection_check")

    def test_multiple_config_files_merge(self):
        """Later files override earlier ones; nested mappings merge."""
        with tempfile.TemporaryDirectory() as td:
            td = Path(td)
            base = td / "base.yaml"
            base.write_text("job:\n  server: vc-east\n  env: {A: '1', B: '2'}\n", encoding="utf-8")
            override = td / "override.json"
            override.write_text(json.dumps({"job": {"env": {"B": "20"}}}), encoding="utf-8")

            conf = Config.load_many(LOG, Config.expand_configs(LOG, [str(base), str(override)]))

        self.assertEqual(conf["job"]["server"], "vc-east")
        self.assertEqual(conf["job"]["env"], {"A": "1", "B": "20"})

    def test_glob_expansion_sorted(self):
        with tempfile.TemporaryDirectory() as td:
            td = Path(td)
            (td / "10-b.yaml").write_text("x: b\n", encoding="utf-8")
            (td / "00-a.yaml").write_text("x: a\n", encoding="utf-8")

            paths = Config.expand_configs(LOG, [str(td / "*.yaml")])
            conf = Config.load_many(LOG, paths)

        self.assertEqual([p.name for p in paths], ["00-a.yaml", "10-b.yaml"])
        self.assertEqual(conf["x"], "b")

    def test_empty_file_is_empty_mapping(self):
        with tempfile.TemporaryDirectory() as td:
            cfg = Path(td) / "empty.yaml"
            cfg.write_text("", encoding="utf-8")
            self.assertEqual(Config.load_one(LOG, cfg), {})


class TestConfigErrors(unittest.TestCase):
    def test_missing_file(self):
        with self.assertRaises(Fatal) as cm:
            Config.expand_configs(LOG, ["/nonexistent/vsbuild.yaml"])
        self.assertEqual(cm.exception.code, 2)

    def test_glob_matches_nothing(self):
        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(Fatal):
                Config.expand_configs(LOG, [str(Path(td) / "*.yaml")])

    def test_top_level_list_rejected(self):
        with tempfile.TemporaryDirectory() as td:
            cfg = Path(td) / "list.yaml"
            cfg.write_text("- a\n- b\n", encoding="utf-8")
            with self.assertRaises(Fatal):
                Config.load_one(LOG, cfg)

    def test_bad_yaml(self):
        with tempfile.TemporaryDirectory() as td:
            cfg = Path(td) / "bad.yaml"
            cfg.write_text("job: [unclosed\n", encoding="utf-8")
            with self.assertRaises(Fatal):
                Config.load_one(LOG, cfg)

    def test_bad_json(self):
        with tempfile.TemporaryDirectory() as td:
            cfg = Path(td) / "bad.json"
            cfg.write_text("{nope", encoding="utf-8")
            with self.assertRaises(Fatal):
                Config.load_one(LOG, cfg)


class TestApplyAsDefaults(unittest.TestCase):
    def test_only_known_dests(self):
        p = argparse.ArgumentParser()
        p.add_argument("--server", default=None)
        Config.apply_as_defaults(LOG, p, {"server": "vc-east", "clouds": []})

        args = p.parse_args([])
        self.assertEqual(args.server, "vc-east")
        self.assertFalse(hasattr(args, "clouds"))
        self.assertEqual(p.parse_args(["--server", "vc-west"]).server, "vc-west")


if __name__ == "__main__":
    unittest.main()
