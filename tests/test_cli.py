# ===============================================
# tests/test_cli.py
# `python -m careerrag` with offline providers.
# ===============================================

import json

import yaml

from careerrag.__main__ import main

from conftest import KNOWLEDGE


def test_ask_against_chunk_file(tmp_path, capsys):
    path = tmp_path / "chunks.yaml"
    path.write_text(yaml.safe_dump(KNOWLEDGE), encoding="utf-8")

    code = main(["ask", "--chunks", str(path), "--profile", '{"grade": 11}', "Which careers need mathematics?"])

    out = capsys.readouterr().out
    assert code == 0
    assert "[ECHO RESPONSE]" in out
    assert "bias stats:" in out


def test_ask_json_output(tmp_path, capsys):
    path = tmp_path / "chunks.json"
    path.write_text(json.dumps(KNOWLEDGE), encoding="utf-8")

    main(["ask", "--chunks", str(path), "--json", "Which careers need mathematics?"])

    body = capsys.readouterr().out.split("bias stats:")[0]
    data = json.loads(body)
    assert data["success"] is True
    assert data["states"][-1] == "succeeded"


def test_invalid_profile_is_reported(tmp_path, capsys):
    path = tmp_path / "chunks.json"
    path.write_text(json.dumps(KNOWLEDGE), encoding="utf-8")

    code = main(["ask", "--chunks", str(path), "--profile", '{"grade": 7}', "Which careers need mathematics?"])

    assert code == 2
    assert "error:" in capsys.readouterr().err
