import logging
from fastapi import APIRouter, Depends, HTTPException

from adventure.schemas import game as game_schema
from adventure.services.game_session import GameSession, TurnInProgressError
from adventure.services.presenter import render_view
from adventure.crud import session_store
from adventure.crud.session_store import SessionStore, get_store

router = APIRouter()

def _get_session_or_404(store: SessionStore, session_id: str) -> GameSession:
    session = session_store.get_session(store, session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Game not found")
    return session

def _submit_turn(session: GameSession, text: str):
    try:
        session.submit_turn(text)
    except TurnInProgressError:
        raise HTTPException(status_code=409, detail="A turn is already in progress.")

@router.post("/game", response_model=game_schema.GameView, status_code=201)
async def create_game(
    game_in: game_schema.GameCreate,
    store: SessionStore = Depends(get_store),
):
    """
    Creates a session and starts the opening turn in the background.
    """
    session = session_store.create_session(store, settings=game_in.settings)
    logging.info(f"Created session {session.session_id} (language: {session.language.value})")
    session.submit_new_game()
    return render_view(session)

@router.get("/game/{session_id}", response_model=game_schema.GameView)
async def get_game_view(session_id: str, store: SessionStore = Depends(get_store)):
    """
    Retrieves what the player currently sees.
    """
    return render_view(_get_session_or_404(store, session_id))

@router.post("/game/{session_id}/choice", response_model=game_schema.GameView, status_code=202)
async def select_choice(
    session_id: str,
    choice_in: game_schema.ChoiceIn,
    store: SessionStore = Depends(get_store),
):
    """
    Plays one of the offered choices. The story text is applied as soon as it
    arrives; the image follows on the event stream.
    """
    session = _get_session_or_404(store, session_id)
    offered = session.state.choices if session.state else []
    matches = [c for c in offered if c.strip() == choice_in.text.strip()]
    if not matches:
        raise HTTPException(status_code=422, detail="Not one of the offered choices.")
    _submit_turn(session, matches[0])
    return render_view(session)

@router.post("/game/{session_id}/action", response_model=game_schema.GameView, status_code=202)
async def submit_custom_action(
    session_id: str,
    action_in: game_schema.ChoiceIn,
    store: SessionStore = Depends(get_store),
):
    """
    Plays a free-text action typed by the player.
    """
    session = _get_session_or_404(store, session_id)
    _submit_turn(session, action_in.text)
    return render_view(session)

@router.patch("/game/{session_id}/settings", response_model=game_schema.GameView)
async def update_settings(
    session_id: str,
    settings_in: game_schema.SettingsUpdate,
    store: SessionStore = Depends(get_store),
):
    """
    Changes language or models. A new language restarts the game.
    """
    session = _get_session_or_404(store, session_id)
    if session.apply_settings(settings_in):
        logging.info(f"Language changed for session {session_id}, restarting game")
        session.submit_new_game()
    return render_view(session)

@router.post("/game/{session_id}/new", response_model=game_schema.GameView, status_code=202)
async def new_game(session_id: str, store: SessionStore = Depends(get_store)):
    """
    Discards the current game and starts a new one.
    """
    session = _get_session_or_404(store, session_id)
    session.submit_new_game()
    return render_view(session)

@router.delete("/game/{session_id}", status_code=204)
async def delete_game_session(session_id: str, store: SessionStore = Depends(get_store)):
    """
    Deletes a game session.
    """
    if not session_store.delete_session(store, session_id):
        raise HTTPException(status_code=404, detail="Game not found")
    logging.info(f"Deleted session {session_id}")
    return
