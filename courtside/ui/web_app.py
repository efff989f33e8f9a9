"""
Web application module for the Courtside game tracker.

This module contains the Flask server that exposes live game sessions as a
JSON API: clock control, substitutions (including editing and deleting past
ones), fouls, period changes and statistics.
"""
import logging
import threading
from dataclasses import asdict
from datetime import datetime
from typing import Dict, Optional

from flask import Flask, Response, jsonify, request

from ..models import Team
from ..services import (
    ClockState, ClockStateError, EventConflictError, GameEngineError, GameSession, GameStore,
    InMemoryGameStore, InvariantViolation, NotFound, StoreError,
)
from ..services.substitution_service import (
    can_end_period, can_start_game, can_start_new_period, substitution_history, validate_substitution,
)
from ..utils import INVALID_TIME, TICK_INTERVAL_SECONDS, WEB_HOST, WEB_PORT, format_time, parse_time

logger = logging.getLogger(__name__)


class WebAppState:
    """
    State holder for the web application.

    Keeps one session per game that has been touched since start-up and a lock
    per session, since Flask serves requests on several threads.
    """

    def __init__(self, store: Optional[GameStore] = None):
        self.store = store or InMemoryGameStore()
        self.sessions: Dict[str, GameSession] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def lock_for(self, game_id: str) -> threading.Lock:
        with self._registry_lock:
            return self._locks.setdefault(game_id, threading.Lock())

    def session(self, game_id: str) -> GameSession:
        """Return the live session for a game, loading it from the store once."""
        session = self.sessions.get(game_id)
        if session is None:
            session = GameSession.open(self.store, game_id)
            self.sessions[game_id] = session
        return session

    def add(self, session: GameSession) -> None:
        self.sessions[session.game.id] = session


def _clock_data(clock: ClockState) -> dict:
    return {
        "isRunning": clock.is_running,
        "timeRemaining": clock.time_remaining,
        "formattedTime": format_time(clock.time_remaining),
        "periodLengthSeconds": clock.period_length_seconds,
        "tickInterval": TICK_INTERVAL_SECONDS,
    }


def _session_data(session: GameSession) -> dict:
    return {
        "success": True,
        "game": session.game.to_json(),
        "clock": _clock_data(session.clock),
        "status": asdict(session.status()),
    }


def _error_response(e: Exception):
    """Map engine and store errors onto HTTP status codes."""
    if isinstance(e, NotFound):
        status = 404
    elif isinstance(e, EventConflictError):
        status = 409
    elif isinstance(e, (InvariantViolation, ClockStateError)):
        status = 400
    elif isinstance(e, StoreError):
        status = 503
    else:
        status = 500
    logger.warning("Request rejected (%s): %s", type(e).__name__, e)
    return jsonify({"success": False, "error": str(e), "kind": type(e).__name__}), status


def create_app(store: Optional[GameStore] = None) -> Flask:
    """
    Create and configure the Flask application with API endpoints.

    Args:
        store: Game store shared by every session (in-memory by default)

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)
    app_state = WebAppState(store)
    app.config["COURTSIDE_STATE"] = app_state

    # ==================== Games ==================== #

    @app.route("/api/games", methods=["POST"])
    def create_game():
        """Create a game from a team and period configuration."""
        try:
            data = request.get_json(silent=True) or {}
            if "team" not in data:
                return jsonify({"success": False, "error": "Team is required"}), 400
            team = Team.from_dict(data["team"])
            date = datetime.fromisoformat(data["date"]) if data.get("date") else None
            session = GameSession.create(
                app_state.store,
                team,
                data.get("opponent", ""),
                period_count=int(data.get("periodCount", 2)),
                period_length=int(data.get("periodLength", 20)),
                starting_players=data.get("startingPlayers") or [],
                date=date,
            )
            app_state.add(session)
            return jsonify(_session_data(session)), 201
        except (GameEngineError, StoreError) as e:
            return _error_response(e)
        except (KeyError, TypeError, ValueError) as e:
            return jsonify({"success": False, "error": f"Invalid game data: {e}"}), 400

    @app.route("/api/games/<game_id>", methods=["GET"])
    def get_game(game_id: str):
        """Current state of a game, with the clock refreshed first."""
        try:
            with app_state.lock_for(game_id):
                session = app_state.session(game_id)
                session.tick()
                return jsonify(_session_data(session))
        except (GameEngineError, StoreError) as e:
            return _error_response(e)

    # ==================== Clock ==================== #

    @app.route("/api/games/<game_id>/timer/<action>", methods=["POST"])
    def timer_action(game_id: str, action: str):
        """Start, pause, toggle, adjust or tick the game clock."""
        if action not in ("start", "pause", "toggle", "adjust", "tick"):
            return jsonify({"success": False, "error": f"Unknown timer action '{action}'"}), 404
        try:
            with app_state.lock_for(game_id):
                session = app_state.session(game_id)
                if action == "adjust":
                    data = request.get_json(silent=True) or {}
                    session.adjust(int(data.get("seconds", 0)))
                else:
                    getattr(session, action)()
                return jsonify({"success": True, "clock": _clock_data(session.clock)})
        except (GameEngineError, StoreError) as e:
            return _error_response(e)
        except (TypeError, ValueError) as e:
            return jsonify({"success": False, "error": str(e)}), 400

    # ==================== Substitutions ==================== #

    @app.route("/api/games/<game_id>/substitutions", methods=["GET"])
    def list_substitutions(game_id: str):
        """Substitution history across all periods."""
        try:
            with app_state.lock_for(game_id):
                session = app_state.session(game_id)
                history = [
                    {"periodNumber": entry.period_number, "event": entry.event.to_dict()}
                    for entry in substitution_history(session.game)
                ]
                return jsonify({"success": True, "history": history})
        except (GameEngineError, StoreError) as e:
            return _error_response(e)

    @app.route("/api/games/<game_id>/substitutions/validate", methods=["POST"])
    def check_substitution(game_id: str):
        """Validate a proposed substitution without recording it."""
        try:
            data = request.get_json(silent=True) or {}
            with app_state.lock_for(game_id):
                session = app_state.session(game_id)
                result = validate_substitution(
                    session.game, data.get("subbedIn", []), data.get("playersOut", [])
                )
                return jsonify({"success": True, **asdict(result)})
        except (GameEngineError, StoreError) as e:
            return _error_response(e)

    @app.route("/api/games/<game_id>/substitutions", methods=["POST"])
    def submit_substitution(game_id: str):
        """Record a substitution at the given (or current) clock time."""
        try:
            data = request.get_json(silent=True) or {}
            at_time = data.get("eventTime")
            with app_state.lock_for(game_id):
                session = app_state.session(game_id)
                active = session.submit_substitution(
                    data.get("subbedIn", []),
                    data.get("playersOut", []),
                    int(at_time) if at_time is not None else None,
                )
                return jsonify({**_session_data(session), "activePlayers": active})
        except (GameEngineError, StoreError) as e:
            return _error_response(e)
        except (TypeError, ValueError) as e:
            return jsonify({"success": False, "error": str(e)}), 400

    @app.route("/api/games/<game_id>/substitutions/<event_id>/roster", methods=["GET"])
    def roster_before(game_id: str, event_id: str):
        """Players on court immediately before a recorded event."""
        try:
            with app_state.lock_for(game_id):
                session = app_state.session(game_id)
                return jsonify({
                    "success": True,
                    "activePlayers": session.roster_before_event(event_id),
                })
        except (GameEngineError, StoreError) as e:
            return _error_response(e)

    @app.route("/api/games/<game_id>/substitutions/<event_id>", methods=["PUT"])
    def edit_substitution(game_id: str, event_id: str):
        """Overwrite a recorded event's time and players."""
        try:
            data = request.get_json(silent=True) or {}
            if "eventTime" not in data:
                return jsonify({"success": False, "error": "eventTime is required"}), 400
            with app_state.lock_for(game_id):
                session = app_state.session(game_id)
                session.edit_substitution(
                    event_id,
                    int(data["eventTime"]),
                    data.get("subbedIn", []),
                    data.get("playersOut", []),
                )
                return jsonify(_session_data(session))
        except (GameEngineError, StoreError) as e:
            return _error_response(e)
        except (TypeError, ValueError) as e:
            return jsonify({"success": False, "error": str(e)}), 400

    @app.route("/api/games/<game_id>/substitutions/<event_id>", methods=["DELETE"])
    def delete_substitution(game_id: str, event_id: str):
        """Remove a recorded event and reverse its effect."""
        try:
            with app_state.lock_for(game_id):
                session = app_state.session(game_id)
                session.delete_substitution(event_id)
                return jsonify(_session_data(session))
        except (GameEngineError, StoreError) as e:
            return _error_response(e)

    # ==================== Fouls and periods ==================== #

    @app.route("/api/games/<game_id>/fouls", methods=["POST"])
    def add_foul(game_id: str):
        """Charge a foul; the response carries any foul-trouble warnings."""
        try:
            data = request.get_json(silent=True) or {}
            player_id = data.get("playerId")
            if not player_id:
                return jsonify({"success": False, "error": "playerId is required"}), 400
            time_remaining = data.get("timeRemaining")
            with app_state.lock_for(game_id):
                session = app_state.session(game_id)
                warnings = session.add_foul(
                    str(player_id),
                    int(time_remaining) if time_remaining is not None else None,
                    period_id=data.get("periodId"),
                )
                return jsonify({**_session_data(session), "warnings": warnings})
        except (GameEngineError, StoreError) as e:
            return _error_response(e)
        except (TypeError, ValueError) as e:
            return jsonify({"success": False, "error": str(e)}), 400

    @app.route("/api/games/<game_id>/end-period", methods=["POST"])
    def end_period(game_id: str):
        """Sub everyone off and move to the next period."""
        try:
            with app_state.lock_for(game_id):
                session = app_state.session(game_id)
                session.end_period()
                return jsonify(_session_data(session))
        except (GameEngineError, StoreError) as e:
            return _error_response(e)

    @app.route("/api/games/<game_id>/checks", methods=["GET"])
    def flow_checks(game_id: str):
        """Whether the game can start, end its period or move to a new one."""
        try:
            with app_state.lock_for(game_id):
                session = app_state.session(game_id)
                session.tick()
                return jsonify({
                    "success": True,
                    "startGame": asdict(can_start_game(session.game)),
                    "endPeriod": asdict(can_end_period(session.game, session.clock)),
                    "startNewPeriod": asdict(can_start_new_period(session.game)),
                })
        except (GameEngineError, StoreError) as e:
            return _error_response(e)

    # ==================== Statistics ==================== #

    @app.route("/api/games/<game_id>/stats", methods=["GET"])
    def get_stats(game_id: str):
        """Per-player lines and team totals at the current clock time."""
        try:
            with app_state.lock_for(game_id):
                session = app_state.session(game_id)
                session.tick()
                return jsonify({
                    "success": True,
                    "players": [asdict(line) for line in session.player_stats()],
                    "team": asdict(session.team_stats()),
                    "status": asdict(session.status()),
                })
        except (GameEngineError, StoreError) as e:
            return _error_response(e)

    @app.route("/api/games/<game_id>/report.csv", methods=["GET"])
    def export_report(game_id: str):
        """Download the game report as CSV."""
        try:
            with app_state.lock_for(game_id):
                session = app_state.session(game_id)
                session.tick()
                csv_content = session.report_csv()
            return Response(
                csv_content,
                mimetype="text/csv",
                headers={"Content-Disposition": f"attachment; filename=game_{game_id}.csv"},
            )
        except (GameEngineError, StoreError) as e:
            return _error_response(e)

    # ==================== Time input ==================== #

    @app.route("/api/time/parse", methods=["POST"])
    def parse_time_input():
        """Validate clock text typed into an input widget."""
        data = request.get_json(silent=True) or {}
        seconds = parse_time(data.get("text", ""))
        if seconds is INVALID_TIME:
            return jsonify({"success": True, "valid": False, "seconds": None})
        return jsonify({
            "success": True,
            "valid": True,
            "seconds": seconds,
            "formatted": format_time(seconds),
        })

    return app


def run_web_app(host: str = WEB_HOST, port: int = WEB_PORT,
                store: Optional[GameStore] = None) -> None:
    """
    Run the web application.

    Args:
        host: Host address to bind to (default: localhost only)
        port: Port number to listen on
        store: Game store to use; in-memory when omitted
    """
    app = create_app(store)
    app.run(host=host, port=port, debug=False)
