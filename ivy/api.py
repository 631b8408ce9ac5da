from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ivy.agent import IvyAgent
from ivy.config import settings
from ivy.core.exceptions import IvyError
from ivy.core.schemas import CareAction, ImageInput
from ivy.core.validation import PlantCareGuideModel

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Ivy Garden Assistant API",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

agent: IvyAgent | None = None


@app.on_event("startup")
def startup_event():
    global agent
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    logger.info("🌱 Initializing Ivy...")
    agent = IvyAgent.from_settings(settings)
    logger.info("✅ Ivy ready")


def get_agent() -> IvyAgent:
    if agent is None:
        raise HTTPException(status_code=500, detail="Agent not initialized")
    return agent


@app.exception_handler(IvyError)
def ivy_error_handler(request: Request, exc: IvyError):
    logger.warning("%s %s failed: %s: %s", request.method, request.url.path, exc.error_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ----------------------------------------------------------------------
# Request bodies
# ----------------------------------------------------------------------
class AdoptRequest(BaseModel):
    guide: PlantCareGuideModel
    image: str = Field(..., description="Plant photo as a base64 data URL.")


class NotesRequest(BaseModel):
    notes: str


class LogEventRequest(BaseModel):
    when: Optional[datetime] = None


class ChatMessageRequest(BaseModel):
    text: str = Field(..., min_length=1)


def _read_image(upload: UploadFile) -> ImageInput:
    mime_type = upload.content_type or "image/jpeg"
    if not mime_type.startswith("image/"):
        raise HTTPException(status_code=400, detail=f"Expected an image upload, got {mime_type}")
    data = upload.file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded image is empty")
    return ImageInput(data=data, mime_type=mime_type)


# ----------------------------------------------------------------------
# Endpoints
# ----------------------------------------------------------------------
@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/identify")
def identify_plant(
    image: UploadFile = File(...),
    legacy: bool = Query(False, description="Use the free-text guide format."),
    ivy: IvyAgent = Depends(get_agent),
):
    return ivy.identify(_read_image(image), legacy_text=legacy)


@app.post("/diagnose")
def diagnose_plant(image: UploadFile = File(...), ivy: IvyAgent = Depends(get_agent)):
    return ivy.diagnose(_read_image(image))


@app.get("/garden")
def list_garden(ivy: IvyAgent = Depends(get_agent)):
    return {"plants": ivy.list_garden()}


@app.post("/garden", status_code=201)
def adopt_plant(body: AdoptRequest, ivy: IvyAgent = Depends(get_agent)):
    try:
        image = ImageInput.from_data_url(body.image)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ivy.adopt(body.guide.to_domain(), image)


@app.get("/garden/{plant_id}")
def get_plant(plant_id: int, ivy: IvyAgent = Depends(get_agent)):
    return ivy.get_plant(plant_id)


@app.get("/garden/{plant_id}/reminders")
def plant_reminders(plant_id: int, ivy: IvyAgent = Depends(get_agent)):
    return ivy.reminders(plant_id)


@app.post("/garden/{plant_id}/log/{action}")
def log_care_event(
    plant_id: int,
    action: CareAction,
    body: Optional[LogEventRequest] = None,
    ivy: IvyAgent = Depends(get_agent),
):
    try:
        return ivy.log_care(plant_id, action, when=body.when if body else None)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.put("/garden/{plant_id}/notes")
def update_notes(plant_id: int, body: NotesRequest, ivy: IvyAgent = Depends(get_agent)):
    return ivy.update_notes(plant_id, body.notes)


@app.delete("/garden/{plant_id}", status_code=204)
def remove_plant(plant_id: int, confirm: bool = Query(False), ivy: IvyAgent = Depends(get_agent)):
    if not confirm:
        raise HTTPException(
            status_code=400,
            detail="Are you sure you want to remove this plant from your garden? Repeat with confirm=true.",
        )
    ivy.remove_plant(plant_id)


@app.post("/chat/sessions", status_code=201)
def start_chat(ivy: IvyAgent = Depends(get_agent)):
    return ivy.start_chat()


@app.get("/chat/sessions/{session_id}")
def chat_transcript(session_id: str, ivy: IvyAgent = Depends(get_agent)):
    return ivy.chat_transcript(session_id)


@app.post("/chat/sessions/{session_id}/messages")
def send_chat_message(session_id: str, body: ChatMessageRequest, ivy: IvyAgent = Depends(get_agent)):
    try:
        return ivy.send_chat(session_id, body.text)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.delete("/chat/sessions/{session_id}", status_code=204)
def end_chat(session_id: str, ivy: IvyAgent = Depends(get_agent)):
    ivy.end_chat(session_id)


def main():
    """Run the API with uvicorn (``ivy-api`` script or ``python -m ivy.api``)."""
    uvicorn.run(
        "ivy.api:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
