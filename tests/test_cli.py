"""
Tests for the nahw command line.
"""
import io
import json
import logging
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from nahw.cli import main


VERSE = {
    "1-2-1-1": {"text": "ٱلْ", "morphology": "particle", "type": "prefix"},
    "1-2-1-2": {"text": "حَمْدُ", "morphology": "noun", "type": "root"},
    "1-2-2-1": {"text": "رَبِّ", "morphology": "noun", "type": "root", "case": "genitive"},
    "1-2-3-1": {"text": "ٱلْعَٰلَمِينَ", "morphology": "noun", "type": "root", "case": "genitive"},
}


class TestCli(unittest.TestCase):

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.test_path = Path(self.test_dir)
        self.verse_file = self.write("verse.json", VERSE)

    def tearDown(self):
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
        shutil.rmtree(self.test_dir)

    def write(self, name, data):
        path = self.test_path / name
        path.write_text(json.dumps(data, ensure_ascii=False), encoding='utf-8')
        return str(path)

    def run_cli(self, *argv):
        """Run main() and return (exit code, stdout, stderr)."""
        stdout, stderr = io.StringIO(), io.StringIO()
        code = 0
        with patch('sys.stdout', stdout), patch('sys.stderr', stderr):
            try:
                main(list(argv))
            except SystemExit as e:
                code = e.code
        return code, stdout.getvalue(), stderr.getvalue()

    def test_detect(self):
        code, out, _ = self.run_cli('detect', self.verse_file, '--stats', '--chains')
        self.assertEqual(code, 0)

        data = json.loads(out)
        self.assertEqual(data["algorithm"], "three_question_test")
        self.assertEqual(data["statistics"]["total"], 1)
        self.assertEqual(data["constructions"][0]["mudaf"]["id"], "1-2-2-1")
        self.assertEqual(data["constructions"][0]["mudaf_ilayh"]["id"], "1-2-3-1")
        self.assertEqual(data["chains"], [])

    def test_detect_accepts_record_list(self):
        records = [dict(record, id=key) for key, record in VERSE.items()]
        code, out, _ = self.run_cli('detect', self.write("list.json", records))
        self.assertEqual(code, 0)
        self.assertEqual(len(json.loads(out)["constructions"]), 1)

    def test_detect_missing_file(self):
        code, out, err = self.run_cli('detect', str(self.test_path / "absent.json"))
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("ERROR:", err)

    def test_detect_bad_json(self):
        path = self.test_path / "bad.json"
        path.write_text("{not json", encoding='utf-8')
        code, _, err = self.run_cli('detect', str(path))
        self.assertEqual(code, 1)
        self.assertIn("not valid JSON", err)

    def test_aggregate_json(self):
        code, out, _ = self.run_cli('aggregate', self.verse_file, '--format', 'json')
        self.assertEqual(code, 0)

        units = json.loads(out)
        self.assertEqual(len(units), 3)
        self.assertEqual(units[0]["segment_ids"], ["1-2-1-1", "1-2-1-2"])
        self.assertEqual(units[0]["rule"], "morphological_attachment")
        self.assertTrue(units[0]["aggregated"])
        self.assertEqual(units[1]["rule"], "standalone")
        self.assertFalse(units[1]["aggregated"])

    def test_aggregate_text(self):
        code, out, _ = self.run_cli('aggregate', self.verse_file)
        self.assertEqual(code, 0)
        self.assertEqual(len(out.strip().splitlines()), 3)

    def test_corpus(self):
        records = [
            {"surah": 1, "verse": 2, "word": 2, "segment": 1, "text": "رَبِّ",
             "morphology": {"morphology": "noun", "case": "genitive"}},
            {"surah": 1, "verse": 2, "word": 3, "segment": 1, "text": "ٱلْعَٰلَمِينَ",
             "morphology": {"morphology": "noun", "case": "genitive"}},
        ]
        code, out, _ = self.run_cli('corpus', self.write("corpus.json", records), '--no-breakdown')
        self.assertEqual(code, 0)

        data = json.loads(out)
        self.assertEqual(data["corpus_summary"]["total_constructions"], 1)
        self.assertNotIn("surah_breakdown", data)

    def test_corpus_rejects_object(self):
        code, _, err = self.run_cli('corpus', self.verse_file)
        self.assertEqual(code, 1)
        self.assertIn("JSON list", err)

    def test_score(self):
        code, out, _ = self.run_cli('score', '--correct', '1-2-2-1,1-2-3-1', '--user', '1-2-2-1')
        self.assertEqual(code, 0)

        data = json.loads(out)
        self.assertEqual(data["numeric_score"], 50)
        self.assertTrue(data["is_partial"])
        self.assertEqual(data["best_index"], 0)

    def test_config_file(self):
        config = self.write("config.json", {"search_window": 1})
        code, out, _ = self.run_cli('--config', config, 'detect', self.verse_file)
        self.assertEqual(code, 0)
        self.assertEqual(len(json.loads(out)["constructions"]), 1)

    def test_invalid_config(self):
        config = self.write("config.json", {"search_window": 0})
        code, _, err = self.run_cli('--config', config, 'detect', self.verse_file)
        self.assertEqual(code, 1)
        self.assertIn("ERROR:", err)

    def test_no_command_shows_help(self):
        code, out, _ = self.run_cli()
        self.assertEqual(code, 1)
        self.assertIn("usage:", out)


if __name__ == '__main__':
    unittest.main()
