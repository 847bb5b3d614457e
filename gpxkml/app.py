import os
from collections import OrderedDict
from io import BytesIO
from uuid import uuid4

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, StreamingResponse
from pydantic import BaseModel

from . import __version__
from .config import Settings, setup_logging
from .converter import convert
from .errors import ParseError, WriteError


KML_MEDIA_TYPE = "application/vnd.google-earth.kml+xml"

settings = Settings.from_env()
logger = setup_logging(settings.log_level)

app = FastAPI(title="GPX → KML Converter", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Simple in-memory KML store to provide a link for Google Earth, oldest entries dropped first
KML_STORE: "OrderedDict[str, bytes]" = OrderedDict()


class ConvertLink(BaseModel):
    url: str
    filename: str


def store_kml(data: bytes) -> str:
    kid = uuid4().hex
    KML_STORE[kid] = data
    while len(KML_STORE) > max(settings.link_store_size, 1):
        KML_STORE.popitem(last=False)
    return kid


async def _convert_upload(file: UploadFile) -> bytes:
    if not file.filename or not file.filename.lower().endswith(".gpx"):
        raise HTTPException(status_code=400, detail="Please upload a .gpx file")

    if file.size is not None and file.size > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="GPX file too large")
    # One byte past the limit is enough to tell an oversize upload apart
    data = await file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="GPX file too large")

    try:
        return convert(data, pretty=settings.pretty)
    except ParseError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except WriteError as e:
        logger.error("KML output failed for %s: %s", file.filename, e)
        raise HTTPException(status_code=500, detail=str(e))


def _kml_name(filename: str) -> str:
    return f"{filename.rsplit('.', 1)[0]}.kml"


@app.get("/healthz")
def healthz():
    return {"status": "ok"}


@app.post("/api/convert")
async def api_convert(file: UploadFile = File(..., description="GPX file")):
    kml_bytes = await _convert_upload(file)
    logger.info("Converted %s (%d bytes KML)", file.filename, len(kml_bytes))
    return StreamingResponse(
        BytesIO(kml_bytes),
        media_type=KML_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={_kml_name(file.filename)}"},
    )


@app.post("/api/convert_link", response_model=ConvertLink)
async def api_convert_link(file: UploadFile = File(..., description="GPX file")):
    kml_bytes = await _convert_upload(file)
    kid = store_kml(kml_bytes)
    return ConvertLink(url=f"/kml/{kid}.kml", filename=_kml_name(file.filename))


@app.get("/kml/{kid}.kml")
def get_kml(kid: str):
    data = KML_STORE.get(kid)
    if not data:
        raise HTTPException(status_code=404, detail="Not found")
    return StreamingResponse(
        BytesIO(data),
        media_type=KML_MEDIA_TYPE,
        headers={"Content-Disposition": f"inline; filename={kid}.kml"},
    )


INDEX_HTML = """
<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>GPX → KML</title>
  </head>
  <body>
    <h1>GPX → KML</h1>
    <form action="/api/convert" method="post" enctype="multipart/form-data">
      <input type="file" name="file" accept=".gpx" required />
      <button type="submit">Convert</button>
    </form>
  </body>
</html>
"""


@app.get("/", response_class=HTMLResponse)
def index():
    return HTMLResponse(INDEX_HTML)


def run():
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "8000")))
