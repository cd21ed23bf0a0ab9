import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Form
from fastapi.responses import JSONResponse

from .globals import get_controller
from .models import Screen, SessionState
from .session import SessionController, TransitionError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

# Hide the answer key until the quiz is submitted.
_HIDE_ANSWERS = {"quiz": {"questions": {"__all__": {"correct_option_id"}}}}


def serialize_state(state: SessionState) -> Dict[str, Any]:
    exclude = None if state.screen == Screen.RESULTS else _HIDE_ANSWERS
    data = state.model_dump(mode="json", by_alias=True, exclude=exclude)
    data.update(
        {
            "answered_count": state.answered_count,
            "total_questions": state.total_questions,
            "can_submit": state.can_submit,
            "progress": state.progress,
        }
    )
    return data


def admin_hidden() -> JSONResponse:
    return JSONResponse({"error": "Admin view is hidden"}, status_code=403)


@router.get("/state")
async def get_state(controller: SessionController = Depends(get_controller)):
    return serialize_state(controller.state)


@router.get("/topics")
async def get_topics(controller: SessionController = Depends(get_controller)):
    return controller.quiz_source.get_topics()


@router.post("/auth")
async def start_quiz(
    username: str = Form(""),
    controller: SessionController = Depends(get_controller),
):
    identity = controller.state.identity
    locked = identity is not None and identity.locked
    if not locked and not username.strip():
        return JSONResponse({"error": "Username is required"}, status_code=400)
    try:
        state = await controller.start_quiz(username)
    except TransitionError as e:
        return JSONResponse({"error": str(e)}, status_code=409)
    return serialize_state(state)


@router.post("/answer")
async def select_option(
    question_id: str = Form(...),
    option_id: str = Form(...),
    controller: SessionController = Depends(get_controller),
):
    try:
        state = controller.select_option(question_id, option_id)
    except TransitionError as e:
        return JSONResponse({"error": str(e)}, status_code=409)
    return serialize_state(state)


@router.post("/submit")
async def submit_quiz(controller: SessionController = Depends(get_controller)):
    state = controller.submit()
    if state.screen != Screen.RESULTS:
        return JSONResponse(
            {"error": "Answer every question before submitting", "state": serialize_state(state)},
            status_code=409,
        )
    return serialize_state(state)


@router.get("/result")
async def get_result(controller: SessionController = Depends(get_controller)):
    try:
        summary = controller.result()
    except TransitionError as e:
        return JSONResponse({"error": str(e)}, status_code=404)
    return summary.model_dump(mode="json")


@router.post("/reset")
async def reset_session(controller: SessionController = Depends(get_controller)):
    try:
        state = controller.reset()
    except TransitionError as e:
        return JSONResponse({"error": str(e)}, status_code=409)
    return serialize_state(state)


@router.post("/logout")
async def logout(controller: SessionController = Depends(get_controller)):
    return serialize_state(controller.logout())


@router.post("/title-click")
async def title_click(controller: SessionController = Depends(get_controller)):
    state = controller.register_title_click()
    return {"click_count": state.click_count, "show_admin": state.show_admin}


# --- Admin view ---
@router.get("/admin/history")
async def admin_history(controller: SessionController = Depends(get_controller)):
    if not controller.state.show_admin:
        return admin_hidden()
    return controller.admin_history()


@router.post("/admin/clear")
async def admin_clear(
    confirm: bool = Form(False),
    controller: SessionController = Depends(get_controller),
):
    if not controller.state.show_admin:
        return admin_hidden()
    cleared = controller.clear_history(confirm)
    if not cleared:
        logger.info("History clear requested without confirmation")
    return {"cleared": cleared}


@router.post("/admin/close")
async def admin_close(controller: SessionController = Depends(get_controller)):
    state = controller.close_admin()
    return {"show_admin": state.show_admin}
