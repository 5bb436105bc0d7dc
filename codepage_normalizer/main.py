import logging
from typing import Optional

from fastapi import FastAPI, UploadFile, File, HTTPException, Query
from .models import Channel, NormalizeRequest, NormalizeResponse, HealthResponse, ProcessingMode, ProcessingRequest
from .normalize import DEFAULT_TABLE, TextNormalizer, compare, decode_raw
from .rules import CHANNELS

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)

app = FastAPI(
    title="codepage-normalizer",
    description="ASCII-safe text normalization for legacy single-byte ingestion channels",
    version="0.1.0",
)

_normalizers = {channel: TextNormalizer(channel=channel) for channel in CHANNELS}


def _json_safe(text: str) -> str:
    # lone surrogates pass through the engine but cannot be encoded as UTF-8
    return text.encode("utf-8", errors="replace").decode("utf-8")


def _respond(request: ProcessingRequest, channel: str, original) -> dict:
    result = _normalizers[channel].process(request)
    stats = compare(original, result.processed_text)
    result.processed_text = _json_safe(result.processed_text)
    return {
        "result": result,
        "stats": stats,
        "mode": request.mode,
        "channel": channel,
    }


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True, "substitutions": len(DEFAULT_TABLE)}


@app.post("/normalize", response_model=NormalizeResponse)
def normalize(request: NormalizeRequest):
    return _respond(request, request.channel, request.raw_text)


@app.post("/normalize/upload", response_model=NormalizeResponse)
async def normalize_upload(
    file: UploadFile = File(...),
    mode: ProcessingMode = Query(ProcessingMode.TEXT),
    channel: Channel = Query("plain"),
    max_length: Optional[int] = Query(None, ge=0),
):
    if not file.filename.lower().endswith(".txt"):
        raise HTTPException(status_code=422, detail="Only TXT files are supported")

    raw = await file.read()
    text = decode_raw(raw)
    request = ProcessingRequest(raw_text=text, max_length=max_length, mode=mode)
    return _respond(request, channel, text)
