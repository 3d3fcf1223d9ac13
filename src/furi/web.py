from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.responses import HTMLResponse, JSONResponse

from .furigana import Segment, align_furigana, load_exception_table
from .romaji import to_romaji
from .segments import segments_to_html, serialize_segments


@dataclass(slots=True)
class WebConfig:
    host: str = "127.0.0.1"
    port: int = 8000
    exceptions_path: Path | None = None


INDEX_HTML = """<!doctype html>
<html lang="ja">
<head>
<meta charset="utf-8">
<title>furi</title>
<style>
  body { font-family: sans-serif; margin: 2rem; max-width: 40rem; }
  input { width: 100%; margin-bottom: .5rem; font-size: 1rem; }
  #result { font-size: 2rem; margin-top: 1rem; }
  rt { font-size: .5em; }
</style>
</head>
<body>
<h1>furi</h1>
<form id="form">
  <input id="title" placeholder="タイトル" autocomplete="off">
  <input id="reading" placeholder="よみがな" autocomplete="off">
  <button type="submit">Align</button>
</form>
<div id="result"></div>
<script>
document.getElementById("form").addEventListener("submit", async (event) => {
  event.preventDefault();
  const params = new URLSearchParams({
    title: document.getElementById("title").value,
    reading: document.getElementById("reading").value,
  });
  const response = await fetch(`/api/align?${params}`);
  const payload = await response.json();
  document.getElementById("result").innerHTML = payload.html;
});
</script>
</body>
</html>
"""


def _align_payload(
    title: str,
    reading: str,
    exceptions: dict[str, tuple[Segment, ...]],
) -> dict[str, object]:
    segments = align_furigana(title, reading, exceptions=exceptions)
    return {
        "title": title,
        "reading": reading,
        "segments": serialize_segments(segments),
        "html": segments_to_html(segments),
    }


def create_app(config: WebConfig) -> FastAPI:
    exceptions: dict[str, tuple[Segment, ...]] = {}
    if config.exceptions_path is not None:
        path = config.exceptions_path.expanduser().resolve()
        if not path.is_file():
            raise FileNotFoundError(f"Exceptions file not found: {path}")
        exceptions = load_exception_table(path)

    app = FastAPI(title="furi")

    @app.get("/", response_class=HTMLResponse)
    def index() -> str:
        return INDEX_HTML

    @app.get("/api/align")
    def api_align(
        title: str = Query(""),
        reading: str = Query(""),
    ) -> JSONResponse:
        return JSONResponse(_align_payload(title, reading, exceptions))

    @app.post("/api/align")
    def api_align_post(payload: dict[str, object] = Body(...)) -> JSONResponse:
        title = payload.get("title", "")
        reading = payload.get("reading", "")
        if not isinstance(title, str) or not isinstance(reading, str):
            raise HTTPException(status_code=400, detail="title and reading must be strings.")
        return JSONResponse(_align_payload(title, reading, exceptions))

    @app.get("/api/romaji")
    def api_romaji(kana: str = Query("")) -> JSONResponse:
        return JSONResponse({"kana": kana, "romaji": to_romaji(kana)})

    return app


__all__ = ["WebConfig", "create_app", "INDEX_HTML"]
