from __future__ import annotations

import json
from pathlib import Path

import furi.cli as cli


def _write_exceptions(path: Path) -> Path:
    payload = {
        "exceptions": [
            {
                "title": "日本",
                "segments": [{"text": "日", "ruby": "に"}, {"text": "本", "ruby": "ほん"}],
            }
        ]
    }
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return path


def test_main_without_arguments_prints_help(capsys) -> None:
    assert cli.main([]) == 0
    assert "usage" in capsys.readouterr().out.lower()


def test_align_bracket_output(capsys) -> None:
    assert cli.main(["猫ちゃん", "ねこちゃん", "--format", "bracket"]) == 0
    assert capsys.readouterr().out == "猫(ねこ)ちゃん\n"


def test_align_json_output(capsys) -> None:
    assert cli.main(["歌", "うた", "-f", "json"]) == 0
    assert json.loads(capsys.readouterr().out) == [{"text": "歌", "ruby": "うた"}]


def test_align_html_output(capsys) -> None:
    assert cli.main(["歌", "うた", "-f", "html"]) == 0
    assert capsys.readouterr().out.strip() == "<ruby>歌<rp>(</rp><rt>うた</rt><rp>)</rp></ruby>"


def test_align_table_output(capsys) -> None:
    assert cli.main(["猫ちゃん", "ねこちゃん"]) == 0
    out = capsys.readouterr().out
    assert "ねこ" in out
    assert "ちゃん" in out


def test_align_uses_exceptions_from_environment(monkeypatch, tmp_path, capsys) -> None:
    path = _write_exceptions(tmp_path / "exceptions.json")
    monkeypatch.setenv(cli.EXCEPTIONS_ENV, str(path))
    assert cli.main(["日本", "にっぽん", "-f", "bracket"]) == 0
    assert capsys.readouterr().out == "日(に)本(ほん)\n"


def test_align_missing_exceptions_file_exits_with_error(monkeypatch, tmp_path, capsys) -> None:
    monkeypatch.delenv(cli.EXCEPTIONS_ENV, raising=False)
    missing = tmp_path / "missing.json"
    assert cli.main(["歌", "うた", "--exceptions", str(missing)]) == 1
    assert "not found" in capsys.readouterr().err


def test_align_debug_flag_prints_fallback(monkeypatch, capsys) -> None:
    import furi.furigana as furigana

    monkeypatch.setattr(furigana, "_DEBUG_LOG", False)
    monkeypatch.delenv(cli.EXCEPTIONS_ENV, raising=False)
    assert cli.main(["猫とイヌ", "ねこいぬと", "-f", "bracket", "--debug"]) == 0
    out = capsys.readouterr().out
    assert "[furi debug]" in out
    assert out.rstrip().endswith("猫とイヌ")


def test_romaji_command(capsys) -> None:
    assert cli.main(["romaji", "がっこう"]) == 0
    assert capsys.readouterr().out == "gakkou\n"


def test_batch_json_to_output_file(monkeypatch, tmp_path) -> None:
    monkeypatch.delenv(cli.EXCEPTIONS_ENV, raising=False)
    source = tmp_path / "pairs.json"
    source.write_text(
        json.dumps(
            [
                {"title": "猫ちゃん", "reading": "ねこちゃん"},
                {"title": "猫とイヌ", "reading": "ねこいぬと"},
                {"title": 3, "reading": "skip"},
            ],
            ensure_ascii=False,
        ),
        encoding="utf-8",
    )
    output = tmp_path / "out.json"

    assert cli.main(["batch", str(source), "-o", str(output), "--no-progress"]) == 0

    results = json.loads(output.read_text(encoding="utf-8"))
    assert results == [
        {
            "title": "猫ちゃん",
            "reading": "ねこちゃん",
            "segments": [{"text": "猫", "ruby": "ねこ"}, {"text": "ちゃん"}],
        },
        {
            "title": "猫とイヌ",
            "reading": "ねこいぬと",
            "segments": [{"text": "猫とイヌ"}],
        },
    ]


def test_batch_tsv_to_stdout(monkeypatch, tmp_path, capsys) -> None:
    monkeypatch.delenv(cli.EXCEPTIONS_ENV, raising=False)
    source = tmp_path / "pairs.tsv"
    source.write_text("歌\tうた\n\nねこ\tねこ\n", encoding="utf-8")

    assert cli.main(["batch", str(source), "--no-progress"]) == 0

    results = json.loads(capsys.readouterr().out)
    assert [entry["segments"] for entry in results] == [
        [{"text": "歌", "ruby": "うた"}],
        [{"text": "ねこ"}],
    ]


def test_batch_rejects_malformed_tsv(monkeypatch, tmp_path, capsys) -> None:
    monkeypatch.delenv(cli.EXCEPTIONS_ENV, raising=False)
    source = tmp_path / "pairs.tsv"
    source.write_text("歌 うた\n", encoding="utf-8")
    assert cli.main(["batch", str(source), "--no-progress"]) == 1
    assert "pairs.tsv:1" in capsys.readouterr().err


def test_batch_rejects_non_array_json(monkeypatch, tmp_path, capsys) -> None:
    monkeypatch.delenv(cli.EXCEPTIONS_ENV, raising=False)
    source = tmp_path / "pairs.json"
    source.write_text("{}", encoding="utf-8")
    assert cli.main(["batch", str(source), "--no-progress"]) == 1
    assert "JSON array" in capsys.readouterr().err


def test_web_command_runs_uvicorn_with_decoded_access_log(monkeypatch, tmp_path) -> None:
    monkeypatch.delenv(cli.EXCEPTIONS_ENV, raising=False)
    calls: dict[str, object] = {}

    def _fake_run(app, host, port, log_config):
        calls["app"] = app
        calls["host"] = host
        calls["port"] = port
        calls["log_config"] = log_config

    monkeypatch.setattr(cli.uvicorn, "run", _fake_run)

    assert cli.main(["web", "--port", "8123"]) == 0

    assert calls["host"] == "127.0.0.1"
    assert calls["port"] == 8123
    log_config = calls["log_config"]
    assert isinstance(log_config, dict)
    assert log_config["formatters"]["access"]["()"] == "furi.logging_utils.Utf8AccessFormatter"


def test_align_subcommand_accepts_command_name_as_title(monkeypatch, capsys) -> None:
    monkeypatch.delenv(cli.EXCEPTIONS_ENV, raising=False)
    assert cli.main(["align", "web", "うぇぶ", "-f", "bracket"]) == 0
    assert capsys.readouterr().out == "web(うぇぶ)\n"


def test_double_dash_treats_command_name_as_title(monkeypatch, capsys) -> None:
    monkeypatch.delenv(cli.EXCEPTIONS_ENV, raising=False)
    assert cli.main(["-f", "bracket", "--", "batch", "ばっち"]) == 0
    assert capsys.readouterr().out == "batch(ばっち)\n"


def test_batch_keeps_curated_segments(monkeypatch, tmp_path) -> None:
    monkeypatch.delenv(cli.EXCEPTIONS_ENV, raising=False)
    source = tmp_path / "pairs.json"
    source.write_text(
        json.dumps(
            [
                {
                    "title": "日本",
                    "segments": [{"text": "日", "ruby": "に"}, {"text": "本", "ruby": "ほん"}],
                },
                {"title": "歌", "reading": "うた"},
            ],
            ensure_ascii=False,
        ),
        encoding="utf-8",
    )
    output = tmp_path / "out.json"

    assert cli.main(["batch", str(source), "-o", str(output), "--no-progress"]) == 0

    results = json.loads(output.read_text(encoding="utf-8"))
    assert results == [
        {
            "title": "日本",
            "reading": "",
            "segments": [{"text": "日", "ruby": "に"}, {"text": "本", "ruby": "ほん"}],
        },
        {"title": "歌", "reading": "うた", "segments": [{"text": "歌", "ruby": "うた"}]},
    ]


def test_batch_rejects_curated_segments_that_do_not_spell_title(monkeypatch, tmp_path, capsys) -> None:
    monkeypatch.delenv(cli.EXCEPTIONS_ENV, raising=False)
    source = tmp_path / "pairs.json"
    source.write_text(
        json.dumps([{"title": "日本", "segments": [{"text": "日"}]}], ensure_ascii=False),
        encoding="utf-8",
    )
    assert cli.main(["batch", str(source), "--no-progress"]) == 1
    assert "do not spell out" in capsys.readouterr().err
