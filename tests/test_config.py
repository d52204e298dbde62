from __future__ import annotations

from pathlib import Path
from tempfile import TemporaryDirectory
import unittest

from talogo.config import TalogoConfig, explain_talogo_toml, load_talogo_toml
from talogo.paths import find_config_path
from talogo.writer import WidthPolicy


class TestTalogoConfig(unittest.TestCase):
    def test_missing_file_gives_defaults(self) -> None:
        with TemporaryDirectory() as tmp:
            cfg, warn = load_talogo_toml(Path(tmp) / "talogo.toml")
            self.assertEqual("", warn)
            self.assertEqual(TalogoConfig(), cfg)
            self.assertEqual(Path("talogo.csv"), cfg.log.file)
            self.assertIs(WidthPolicy.WIDEN, cfg.log.width_policy)

        cfg, warn = load_talogo_toml(None)
        self.assertEqual("", warn)
        self.assertEqual(1.0, cfg.timer.refresh_interval)

    def test_values_parse_and_paths_resolve_next_to_the_file(self) -> None:
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / "talogo.toml"
            path.write_text(
                "\n".join(
                    [
                        "[log]",
                        'file = "logs/work.csv"',
                        'width_policy = "strict"',
                        "",
                        "[timer]",
                        "refresh_interval = 0.5",
                        "",
                        "[diagnostics]",
                        'log_file = "logs/talogo.log"',
                    ]
                )
                + "\n",
                encoding="utf-8",
            )
            cfg, warn = load_talogo_toml(path)

            self.assertEqual("", warn)
            self.assertEqual(Path(tmp) / "logs" / "work.csv", cfg.log.file)
            self.assertIs(WidthPolicy.STRICT, cfg.log.width_policy)
            self.assertEqual(0.5, cfg.timer.refresh_interval)
            self.assertEqual(Path(tmp) / "logs" / "talogo.log", cfg.diagnostics.log_file)

    def test_parse_failure_falls_back_with_warning(self) -> None:
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / "talogo.toml"
            path.write_text("[log\nfile = \n", encoding="utf-8")
            cfg, warn = load_talogo_toml(path)
            self.assertTrue(warn.startswith("talogo.toml parse failed"))
            self.assertEqual(TalogoConfig(), cfg)

    def test_bad_values_fall_back_per_key(self) -> None:
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / "talogo.toml"
            path.write_text(
                '[log]\nwidth_policy = "grow"\nfile = "/var/log/t.csv"\n\n[timer]\nrefresh_interval = "soon"\n',
                encoding="utf-8",
            )
            cfg, warn = load_talogo_toml(path)

            self.assertIn("unknown width policy", warn)
            self.assertIs(WidthPolicy.WIDEN, cfg.log.width_policy)
            self.assertEqual(Path("/var/log/t.csv"), cfg.log.file)
            self.assertEqual(1.0, cfg.timer.refresh_interval)

            path.write_text("[timer]\nrefresh_interval = 0\n", encoding="utf-8")
            cfg, _warn = load_talogo_toml(path)
            self.assertEqual(0.1, cfg.timer.refresh_interval)

    def test_explain_lists_current_values(self) -> None:
        text = explain_talogo_toml(TalogoConfig(), path=Path("/work/talogo.toml"))
        self.assertIn("talogo.toml guide (/work/talogo.toml)", text)
        self.assertIn("(current: widen)", text)
        self.assertIn("(current: talogo.csv)", text)
        self.assertIn("(current: (stderr only))", text)


class TestConfigDiscovery(unittest.TestCase):
    def test_nearest_config_above_start_directory(self) -> None:
        with TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            nested = root / "a" / "b"
            nested.mkdir(parents=True)
            (root / "talogo.toml").write_text("[log]\n", encoding="utf-8")

            self.assertEqual(root / "talogo.toml", find_config_path(nested))

            (root / "a" / "talogo.toml").write_text("[log]\n", encoding="utf-8")
            self.assertEqual(root / "a" / "talogo.toml", find_config_path(nested))


if __name__ == "__main__":
    unittest.main()
