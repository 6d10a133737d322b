"""Tests for the command line interface."""
import json
from unittest.mock import MagicMock, patch

import pytest

from listing_localizer import cli
from listing_localizer.config import config
from listing_localizer.ingestion import parse_delimited
from listing_localizer.models import ColumnMapping

CSV_TEXT = (
    "item_name,brand,product_description,bullet_point1,generic_keyword\n"
    "Desk Lamp,Acme,Bright desk lamp,Bright,lamp\n"
)


def fake_call_ai(prompt, system_msg="", model=None, json_mode=True):
    title = prompt.split("ORIGINAL LISTING:\nTitle: ", 1)[1].split("\n", 1)[0]
    return json.dumps({
        "title": f"DE {title}",
        "description": "Helle Schreibtischlampe",
        "bullet_points": ["Hell", "Klein", "Leicht", "Stabil", "Modern"],
        "keywords": "lampe, schreibtisch",
    })


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("listing_localizer.cli.setup_logging"):
        yield


@pytest.fixture
def listings_csv(tmp_path):
    path = tmp_path / "listings.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")
    return path


class TestMarketplacesCommand:
    def test_lists_all(self, capsys):
        cli.main(["marketplaces"])
        out = capsys.readouterr().out
        assert "amazon_de" in out
        assert "etsy_international" in out
        assert "no bullets" in out


class TestDetectCommand:
    def test_table(self, listings_csv, capsys):
        cli.main(["detect", "--file", str(listings_csv)])
        out = capsys.readouterr().out
        assert "CSV | 5 columns | 1 rows" in out
        assert "-> title" in out
        assert "-> bulletPoints.0" in out

    def test_json(self, listings_csv, capsys):
        cli.main(["detect", "--file", str(listings_csv), "--json"])
        data = json.loads(capsys.readouterr().out)
        assert data[0] == {"sourceColumn": "item_name", "targetField": "title"}
        assert data[1] == {"sourceColumn": "brand", "targetField": "ignore"}

    def test_remember_restores_saved(self, listings_csv, capsys):
        store = MagicMock()
        store.load.return_value = [ColumnMapping("brand", "title")]
        with patch("listing_localizer.cli._mapping_store", return_value=store):
            cli.main(["detect", "--file", str(listings_csv), "--remember"])
        out = capsys.readouterr().out
        assert "Restored saved mapping" in out
        assert "brand" in out

    def test_unsupported_file(self, tmp_path, capsys):
        path = tmp_path / "catalog.pdf"
        path.write_bytes(b"%PDF")
        with pytest.raises(SystemExit) as exc:
            cli.main(["detect", "--file", str(path)])
        assert exc.value.code == 1
        assert "Error: Unsupported file type" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit):
            cli.main(["detect", "--file", str(tmp_path / "nope.csv")])
        assert "Error:" in capsys.readouterr().out


class TestLocalizeCommand:
    @pytest.fixture(autouse=True)
    def api_key(self, monkeypatch):
        monkeypatch.setattr(config, "OPENAI_KEY", "sk-test")

    @patch("listing_localizer.ai_engine.call_ai", side_effect=fake_call_ai)
    def test_amazon_flat_file(self, mock_ai, listings_csv, tmp_path, capsys):
        out_path = tmp_path / "out.tsv"
        cli.main([
            "localize", "--file", str(listings_csv), "-m", "amazon_de", "-l", "German",
            "--format", "amazon", "-o", str(out_path),
        ])
        rows = parse_delimited(out_path.read_text(encoding="utf-8")).rows
        assert rows[0]["item_name"] == "DE Desk Lamp"
        assert rows[0]["brand"] == "Acme"
        assert rows[0]["bullet_point1"] == "Hell"
        out = capsys.readouterr().out
        assert "[1/1] listings localized" in out
        assert f"Saved to {out_path}" in out
        assert mock_ai.call_count == 1

    @patch("listing_localizer.ai_engine.call_ai", side_effect=fake_call_ai)
    def test_default_output_name(self, mock_ai, listings_csv, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        cli.main(["localize", "--file", str(listings_csv), "-m", "etsy_international",
                  "-l", "French", "--format", "etsy"])
        assert (tmp_path / "etsy_french.csv").exists()

    @patch("listing_localizer.ai_engine.call_ai", side_effect=fake_call_ai)
    def test_mappings_file(self, mock_ai, listings_csv, tmp_path):
        mappings_path = tmp_path / "mappings.json"
        mappings_path.write_text(json.dumps([
            {"sourceColumn": "item_name", "targetField": "title"},
            {"sourceColumn": "brand", "targetField": "doNotTranslate"},
        ]))
        out_path = tmp_path / "out.csv"
        cli.main(["localize", "--file", str(listings_csv), "-m", "amazon_de", "-l", "German",
                  "--mappings", str(mappings_path), "-o", str(out_path)])
        header = out_path.read_text(encoding="utf-8").split("\n", 1)[0]
        assert "German Bullet 1" in header

    @patch("listing_localizer.ai_engine.call_ai", side_effect=fake_call_ai)
    def test_remember_saves_mapping(self, mock_ai, listings_csv, tmp_path):
        store = MagicMock()
        store.load.return_value = None
        with patch("listing_localizer.cli._mapping_store", return_value=store):
            cli.main(["localize", "--file", str(listings_csv), "-m", "amazon_de", "-l", "German",
                      "--remember", "-o", str(tmp_path / "out.csv")])
        headers, mappings = store.save.call_args.args
        assert headers == ["item_name", "brand", "product_description", "bullet_point1",
                           "generic_keyword"]
        assert mappings[0] == ColumnMapping("item_name", "title")

    def test_unknown_marketplace(self, listings_csv, capsys):
        with pytest.raises(SystemExit) as exc:
            cli.main(["localize", "--file", str(listings_csv), "-m", "ebay_uk", "-l", "English"])
        assert exc.value.code == 1
        out = capsys.readouterr().out
        assert "Unknown marketplace: ebay_uk" in out
        assert "amazon_de" in out

    def test_missing_api_key(self, listings_csv, monkeypatch, capsys):
        monkeypatch.setattr(config, "OPENAI_KEY", "")
        with pytest.raises(SystemExit):
            cli.main(["localize", "--file", str(listings_csv), "-m", "amazon_de", "-l", "German"])
        assert "OPENAI_API_KEY" in capsys.readouterr().out


class TestMain:
    def test_no_command(self, capsys):
        with pytest.raises(SystemExit) as exc:
            cli.main([])
        assert exc.value.code == 1

    def test_invalid_format_rejected_by_parser(self, listings_csv):
        with pytest.raises(SystemExit):
            cli.main(["localize", "--file", str(listings_csv), "-m", "amazon_de", "-l", "German",
                      "--format", "pdf"])
