"""
Pixelsmith FastAPI App
"""

import base64
import binascii
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from pixelsmith.components.edit.live_editor import LiveEditor
from pixelsmith.config import config
from pixelsmith.exceptions import PipelineTimeoutError
from pixelsmith.orchestrator.orchestrator import PipelineOrchestrator
from pixelsmith.schemas import FileInput, PipelineInput, PipelineResult, RepoContext
from pixelsmith.swarm.schemas import AgentFeedback, SuspendedState
from pixelsmith.utils.logger import setup_logging, get_logger

setup_logging()
logger = get_logger(__name__, "PixelsmithAPI")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    """
    logger.info("Pixelsmith API starting...", correlation_id="SYSTEM")
    logger.info(f"Version: {app.version}", correlation_id="SYSTEM")
    logger.info(f"Log Level: {config.LOG_LEVEL}", correlation_id="SYSTEM")

    config.validate()
    app.state.orchestrator = PipelineOrchestrator()
    app.state.live_editor = LiveEditor()

    logger.info("Pixelsmith app is running and ready to serve requests", correlation_id="SYSTEM")
    yield
    logger.info("Pixelsmith API shutting down", correlation_id="SYSTEM")


# FastAPI Application
app = FastAPI(
    title="Pixelsmith API",
    description="Visual reference to application code",
    version="1.0.0",
    lifespan=lifespan,
)


class UploadedFile(BaseModel):
    """Base64 encoded reference file."""
    data: str
    mime_type: str
    filename: str = "upload"


class PipelineRequest(BaseModel):
    """Request model for a pipeline run."""
    files: List[UploadedFile] = Field(default_factory=list)
    instructions: str = ""
    current_code: Optional[str] = None
    repo_context: Optional[RepoContext] = None
    skip_healing: bool = False


class ResumeRequest(BaseModel):
    """Command channel feedback for a suspended autonomy run."""
    suspended_state: SuspendedState
    feedback: AgentFeedback


class LiveEditRequest(BaseModel):
    current_code: str
    selected_data_id: str
    instruction: str


def to_pipeline_input(request: PipelineRequest) -> PipelineInput:
    files = []
    for i, upload in enumerate(request.files):
        encoded = upload.data.split(",", 1)[-1] if upload.data.startswith("data:") else upload.data
        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError):
            raise HTTPException(status_code=400, detail=f"File {i} ({upload.filename}) is not valid base64")
        files.append(FileInput(data=data, mime_type=upload.mime_type, filename=upload.filename))

    return PipelineInput(
        files=files,
        instructions=request.instructions,
        current_code=request.current_code,
        repo_context=request.repo_context,
        skip_healing=request.skip_healing,
    )


def to_response(result: PipelineResult) -> dict:
    return {
        "status": "awaiting_command" if result.awaiting_remote_execution else "success",
        **result.model_dump(mode="json", exclude_none=True),
    }


@app.get("/")
async def root():
    return {
        "name": "Pixelsmith API",
        "version": app.version,
        "status": "running",
        "endpoints": {
            "root": "/",
            "health": "/health",
            "pipeline": "/pipeline",
            "resume": "/pipeline/resume",
            "live_edit": "/live-edit",
        },
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": app.version}


@app.post("/pipeline")
async def run_pipeline(request: PipelineRequest, http_request: Request):
    logger.info(
        f"Pipeline request received | "
        f"Files: {len(request.files)} | "
        f"Current code: {'yes' if request.current_code else 'no'} | "
        f"Skip healing: {request.skip_healing}",
        correlation_id="REQUEST",
    )

    pipeline_input = to_pipeline_input(request)
    try:
        result = await http_request.app.state.orchestrator.run(pipeline_input)
    except PipelineTimeoutError as e:
        logger.error(str(e), correlation_id="ERROR")
        raise HTTPException(status_code=504, detail=str(e))
    except Exception as e:
        logger.exception("Exception during pipeline run", correlation_id="ERROR")
        return {"status": "error", "error": str(e), "message": "An unexpected error occurred during the pipeline run."}

    return to_response(result)


@app.post("/pipeline/resume")
async def resume_pipeline(request: ResumeRequest, http_request: Request):
    logger.info(
        f"Resume request received | Swarm: {request.suspended_state.swarm_id} | "
        f"Command: {request.feedback.command_id} | Exit: {request.feedback.exit_code}",
        correlation_id="REQUEST",
    )

    try:
        result = await http_request.app.state.orchestrator.resume(request.suspended_state, request.feedback)
    except Exception as e:
        logger.exception("Exception during swarm resume", correlation_id="ERROR")
        return {"status": "error", "error": str(e), "message": "An unexpected error occurred while resuming."}

    return to_response(result)


@app.post("/live-edit")
async def live_edit(request: LiveEditRequest, http_request: Request):
    logger.info(f"Live edit request received | data-id: {request.selected_data_id}", correlation_id="REQUEST")
    result = await http_request.app.state.live_editor.run(
        request.current_code, request.selected_data_id, request.instruction
    )
    return result.model_dump()


def start_server():
    uvicorn.run(
        "pixelsmith.main:app",
        host=config.API_HOST,
        port=config.API_PORT,
        log_level=config.LOG_LEVEL,
    )


if __name__ == "__main__":
    logger.info("Starting Pixelsmith server", correlation_id="SYSTEM")
    start_server()
