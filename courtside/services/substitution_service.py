"""
Substitution event engine for the Courtside game tracker.

Each period keeps an append-only log of substitution events. The log is the
source of truth for who is on court; the per-player ``Substitution`` spans and
``Game.active_players`` are projections of it. Every operation takes a Game and
returns a new one, or raises before anything is changed.

Rosters are rewound by undoing events from the most recent one backwards: an
undo adds back the players that left and removes the players that entered.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Tuple

from ..models import Game, Period, Player, Substitution, SubstitutionEvent
from ..utils import MAX_ACTIVE_PLAYERS, MIN_RECOMMENDED_ON_COURT, FOUL_WARNING_THRESHOLD
from ..utils.ids import new_id
from .analytics_service import calculate_player_fouls, game_status
from .exceptions import EventConflictError, EventNotFound, InvariantViolation, PlayerNotFound
from .timer_service import ClockState, apply_clock, reset_clock

logger = logging.getLogger(__name__)


@dataclass
class SubmitResult:
    """Game after a substitution and the roster it leaves on court."""
    game: Game
    active_players: List[str]


@dataclass
class PeriodEndResult:
    """Game after the period ended and the clock for whatever comes next."""
    game: Game
    clock: ClockState


@dataclass
class ValidationResult:
    """Outcome of checking a proposed substitution without applying it."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class HistoryEntry:
    period_number: int
    event: SubstitutionEvent


# ----------------------------------------------------------------------
# Roster arithmetic
# ----------------------------------------------------------------------

def _unique(ids: Iterable[str]) -> List[str]:
    seen = []
    for pid in ids or []:
        pid = str(pid)
        if pid not in seen:
            seen.append(pid)
    return seen


def apply_event(active: List[str], event: SubstitutionEvent) -> List[str]:
    """Roster after ``event``: players out leave, players in arrive."""
    out_ids = set(event.players_out_ids)
    result = [pid for pid in active if pid not in out_ids]
    for pid in event.subbed_in_ids:
        if pid not in result:
            result.append(pid)
    return result


def undo_event(active: List[str], event: SubstitutionEvent) -> List[str]:
    """Roster before ``event``; the inverse of :func:`apply_event`."""
    in_ids = set(event.subbed_in_ids)
    result = [pid for pid in active if pid not in in_ids]
    for pid in event.players_out_ids:
        if pid not in result:
            result.append(pid)
    return result


def latest_roster(game: Game, period_index: int) -> List[str]:
    """
    Roster after the last recorded event of a period.

    Only the current period can still have players on court; every other
    period is either finished (emptied by its end event) or not started.
    """
    if period_index == game.current_period:
        return list(game.active_players)
    return []


def period_start_roster(game: Game, period_index: int) -> List[str]:
    """Rewind every event of the period to recover who started it."""
    period = game.periods[period_index]
    active = latest_roster(game, period_index)
    for event in reversed(period.sub_events):
        active = undo_event(active, event)
    return active


def active_after(game: Game, period_index: int, upto_index: int) -> List[str]:
    """
    Replay a period forward through event ``upto_index`` (inclusive).

    ``-1`` returns the roster the period started with.
    """
    period = game.periods[period_index]
    active = period_start_roster(game, period_index)
    for event in period.sub_events[: upto_index + 1]:
        active = apply_event(active, event)
    return active


def locate_event(game: Game, event_id: str) -> Tuple[int, int]:
    """
    Find an event anywhere in the game.

    Returns:
        ``(period_index, event_index)``

    Raises:
        EventNotFound: If no period holds the event
    """
    for p_idx, period in enumerate(game.periods):
        e_idx = period.event_index(event_id)
        if e_idx is not None:
            return p_idx, e_idx
    raise EventNotFound(f"Substitution event {event_id} not found")


def roster_before_event(game: Game, event_id: str) -> List[str]:
    """
    Roster immediately before an event, as shown when editing it.

    Undoes every later event from the most recent backwards, then the target
    itself.
    """
    p_idx, e_idx = locate_event(game, event_id)
    period = game.periods[p_idx]
    active = latest_roster(game, p_idx)
    for event in reversed(period.sub_events[e_idx:]):
        active = undo_event(active, event)
    logger.debug("Rewound period %s to before event %s: %s", p_idx, event_id, active)
    return active


# ----------------------------------------------------------------------
# Validation
# ----------------------------------------------------------------------

def _resolve_players(game: Game, player_ids: List[str]) -> List[Player]:
    players = []
    for pid in player_ids:
        player = game.find_player(pid) or game.team.find_player(pid)
        if player is None:
            raise PlayerNotFound(f"Player {pid} is not on the roster")
        players.append(player)
    return players


def _check_event_players(subbed_in: List[str], players_out: List[str]) -> None:
    if not subbed_in and not players_out:
        raise InvariantViolation("A substitution must move at least one player")
    both = set(subbed_in) & set(players_out)
    if both:
        raise InvariantViolation(
            f"Players cannot be subbed in and out at once: {', '.join(sorted(both))}"
        )


def _check_transition(active: List[str], subbed_in: List[str], players_out: List[str]) -> None:
    not_on_court = [pid for pid in players_out if pid not in active]
    if not_on_court:
        raise InvariantViolation(f"Players are not on court: {', '.join(not_on_court)}")
    already_on = [pid for pid in subbed_in if pid in active]
    if already_on:
        raise InvariantViolation(f"Players are already on court: {', '.join(already_on)}")
    size = len(active) - len(players_out) + len(subbed_in)
    if size > MAX_ACTIVE_PLAYERS:
        raise InvariantViolation(
            f"Substitution would put {size} players on court (max {MAX_ACTIVE_PLAYERS})"
        )


def _check_event_time(period: Period, at_time: int, upper: Optional[int] = None,
                      lower: int = 0) -> None:
    upper = period.length_seconds if upper is None else upper
    if at_time < 0 or at_time > period.length_seconds:
        raise InvariantViolation(
            f"Event time {at_time}s is outside the period (0-{period.length_seconds}s)"
        )
    if at_time > upper or at_time < lower:
        raise InvariantViolation(
            f"Event time {at_time}s would reorder events (must be between {lower}s and {upper}s)"
        )


def validate_substitution(game: Game, subbed_in: Iterable[str],
                          sub_out: Iterable[str]) -> ValidationResult:
    """
    Check a proposed substitution against the current roster without raising.

    Errors block the substitution; warnings are advisory (a thin lineup or an
    incoming player in foul trouble).
    """
    in_ids, out_ids = _unique(subbed_in), _unique(sub_out)
    result = ValidationResult(is_valid=True)
    try:
        _check_event_players(in_ids, out_ids)
        _resolve_players(game, in_ids + out_ids)
        _check_transition(list(game.active_players), in_ids, out_ids)
    except (InvariantViolation, PlayerNotFound) as e:
        result.is_valid = False
        result.errors.append(str(e))
        return result

    remaining = len(game.active_players) - len(out_ids) + len(in_ids)
    if remaining < MIN_RECOMMENDED_ON_COURT:
        result.warnings.append(f"Only {remaining} players would be on court")
    for pid in in_ids:
        fouls = calculate_player_fouls(game, pid)
        if fouls >= FOUL_WARNING_THRESHOLD:
            player = game.find_player(pid) or game.team.find_player(pid)
            result.warnings.append(f"{player.label} has {fouls} fouls")
    return result


def can_start_game(game: Game) -> ValidationResult:
    """Check that the game has periods, players and a legal lineup before tip-off."""
    result = ValidationResult(is_valid=True)
    if not game.periods:
        result.errors.append("Game must have at least one period defined")
    if not game.players:
        result.errors.append("Game must have at least one player")
    elif len(game.players) < MAX_ACTIVE_PLAYERS:
        result.warnings.append(
            f"Game has only {len(game.players)} players; "
            f"at least {MAX_ACTIVE_PLAYERS} allows substitutions"
        )
    if game.is_running:
        result.errors.append("Game is already running")
    if not game.active_players:
        result.errors.append("Must have at least one active player to start the game")
    elif len(game.active_players) > MAX_ACTIVE_PLAYERS:
        result.errors.append(f"Cannot start with more than {MAX_ACTIVE_PLAYERS} active players")
    result.is_valid = not result.errors
    return result


def can_end_period(game: Game, clock: Optional[ClockState] = None) -> ValidationResult:
    """
    Check whether the current period can be closed.

    A finished game has nothing left to end; time still on the clock is only
    a warning.
    """
    result = ValidationResult(is_valid=True)
    if game_status(game).is_game_complete:
        result.errors.append("No current period to end; the game is complete")
    if clock is not None and clock.time_remaining > 0:
        result.warnings.append(f"{clock.time_remaining}s remain on the clock")
    result.is_valid = not result.errors
    return result


def can_start_new_period(game: Game) -> ValidationResult:
    """Check that the clock is stopped before moving on; warns on the last period."""
    result = ValidationResult(is_valid=True)
    if game.is_running:
        result.errors.append("Current period must be ended before starting a new one")
    if game.current_period >= len(game.periods) - 1:
        result.warnings.append("This is the last period in the game")
    result.is_valid = not result.errors
    return result


# ----------------------------------------------------------------------
# Log mutation
# ----------------------------------------------------------------------

def _replace_period(game: Game, period_index: int, period: Period, **changes) -> Game:
    periods = list(game.periods)
    periods[period_index] = period
    return replace(game, periods=periods, **changes)


def _record_event(game: Game, subbed_in: List[Player], players_out: List[Player],
                  at_time: int) -> Tuple[Game, SubstitutionEvent]:
    """Append an event to the current period. Assumes validation already ran."""
    period_index = game.current_period
    period = game.periods[period_index]
    event = SubstitutionEvent(
        id=new_id(),
        event_time=at_time,
        period_id=period.id,
        subbed_in=list(subbed_in),
        players_out=list(players_out),
    )
    event_times = {e.id: e.event_time for e in period.sub_events}
    out_ids = {p.id for p in players_out}

    substitutions = []
    for sub in period.substitutions:
        if sub.is_open and sub.player.id in out_ids:
            sub = replace(
                sub,
                time_out_event=event.id,
                seconds_played=event_times[sub.time_in_event] - at_time,
            )
        substitutions.append(sub)
    for player in subbed_in:
        substitutions.append(Substitution(
            id=new_id(),
            player=player,
            time_in_event=event.id,
            period_id=period.id,
        ))

    new_period = replace(
        period,
        substitutions=substitutions,
        sub_events=list(period.sub_events) + [event],
    )
    active = apply_event(list(game.active_players), event)
    return _replace_period(game, period_index, new_period, active_players=active), event


def submit(game: Game, subbed_in: Iterable[str], sub_out: Iterable[str],
           at_time: int) -> SubmitResult:
    """
    Record a substitution in the current period.

    Args:
        game: Current game
        subbed_in: Ids of players entering the court
        sub_out: Ids of players leaving the court
        at_time: Seconds remaining on the period clock

    Raises:
        InvariantViolation: If the roster rules would be broken or the event
            would be earlier on the game clock than one already recorded
        PlayerNotFound: If an id is not on the roster
    """
    in_ids, out_ids = _unique(subbed_in), _unique(sub_out)
    at_time = int(at_time)
    period = game.current_period_data

    _check_event_players(in_ids, out_ids)
    players_in = _resolve_players(game, in_ids)
    players_out = _resolve_players(game, out_ids)
    _check_transition(list(game.active_players), in_ids, out_ids)
    last_time = period.sub_events[-1].event_time if period.sub_events else None
    _check_event_time(period, at_time, upper=last_time)

    game, event = _record_event(game, players_in, players_out, at_time)
    logger.info(
        "Substitution at %ss in period %s: in=%s out=%s",
        at_time, period.period_number, in_ids, out_ids,
    )
    return SubmitResult(game=game, active_players=list(game.active_players))


def _replay_period(period: Period, start: List[str],
                   events: List[SubstitutionEvent]) -> Tuple[List[Substitution], List[str]]:
    """
    Rebuild a period's spans and final roster from its log.

    Span ids survive for every stint whose player and opening event are
    unchanged.

    Raises:
        InvariantViolation: If any event is not legal against the roster the
            replay has reached
    """
    known_ids: Dict[Tuple[str, str], str] = {
        (s.player.id, s.time_in_event): s.id for s in period.substitutions
    }

    active = list(start)
    substitutions: List[Substitution] = []
    open_spans: Dict[str, int] = {}
    event_times: Dict[str, int] = {}

    for event in events:
        try:
            _check_transition(active, event.subbed_in_ids, event.players_out_ids)
        except InvariantViolation as e:
            raise InvariantViolation(f"Event at {event.event_time}s: {e}") from e
        event_times[event.id] = event.event_time

        for player in event.players_out:
            idx = open_spans.pop(player.id, None)
            if idx is None:
                continue
            sub = substitutions[idx]
            opened_at = event_times.get(sub.time_in_event, period.length_seconds)
            substitutions[idx] = replace(
                sub,
                time_out_event=event.id,
                seconds_played=opened_at - event.event_time,
            )
        for player in event.subbed_in:
            span_id = known_ids.get((player.id, event.id)) or new_id()
            open_spans[player.id] = len(substitutions)
            substitutions.append(Substitution(
                id=span_id,
                player=player,
                time_in_event=event.id,
                period_id=period.id,
            ))
        active = apply_event(active, event)

    return substitutions, active


def _rebuild_period(game: Game, period_index: int,
                    events: List[SubstitutionEvent]) -> Game:
    """Swap in a new log for a period and reproject spans and roster."""
    period = game.periods[period_index]
    start = period_start_roster(game, period_index)
    substitutions, active = _replay_period(period, start, events)

    new_period = replace(period, substitutions=substitutions, sub_events=events)
    if period_index == game.current_period:
        return _replace_period(game, period_index, new_period, active_players=active)
    if active != latest_roster(game, period_index):
        raise InvariantViolation(
            f"Change would leave players on court after period {period.period_number} ended"
        )
    return _replace_period(game, period_index, new_period)


def edit_event(game: Game, event_id: str, new_time: int, new_subbed_in: Iterable[str],
               new_players_out: Iterable[str]) -> Game:
    """
    Overwrite an event's time and players in place.

    The new time must keep the event between its neighbours; events are never
    reordered. The period is replayed so every later event is checked against
    the changed roster.

    Raises:
        EventNotFound: If the event does not exist
        InvariantViolation: If the edit reorders events or breaks the roster
            rules for this or any later event
        PlayerNotFound: If an id is not on the roster
    """
    p_idx, e_idx = locate_event(game, event_id)
    period = game.periods[p_idx]
    in_ids, out_ids = _unique(new_subbed_in), _unique(new_players_out)
    new_time = int(new_time)

    _check_event_players(in_ids, out_ids)
    players_in = _resolve_players(game, in_ids)
    players_out = _resolve_players(game, out_ids)
    upper = period.sub_events[e_idx - 1].event_time if e_idx > 0 else None
    lower = period.sub_events[e_idx + 1].event_time if e_idx + 1 < len(period.sub_events) else 0
    _check_event_time(period, new_time, upper=upper, lower=lower)

    events = list(period.sub_events)
    events[e_idx] = replace(
        events[e_idx],
        event_time=new_time,
        subbed_in=players_in,
        players_out=players_out,
    )
    game = _rebuild_period(game, p_idx, events)
    logger.info("Edited substitution %s: %ss in=%s out=%s", event_id, new_time, in_ids, out_ids)
    return game


def delete_event(game: Game, event_id: str) -> Game:
    """
    Remove an event and reverse its effect.

    Spans it opened disappear, spans it closed are reopened, and the roster
    becomes ``active - subbed_in + players_out``.

    Raises:
        EventNotFound: If the event does not exist
        EventConflictError: If a later event in the period involves any of the
            same players
        InvariantViolation: If reversing the event would overfill the court
    """
    p_idx, e_idx = locate_event(game, event_id)
    period = game.periods[p_idx]
    target = period.sub_events[e_idx]

    touched = target.player_ids()
    for later in period.sub_events[e_idx + 1:]:
        shared = touched & later.player_ids()
        if shared:
            raise EventConflictError(
                f"Event at {later.event_time}s also moves {', '.join(sorted(shared))}; "
                "delete it first"
            )

    events = [e for e in period.sub_events if e.id != event_id]
    game = _rebuild_period(game, p_idx, events)
    logger.info("Deleted substitution %s from period %s", event_id, period.period_number)
    return game


def end_period(game: Game, clock: Optional[ClockState] = None) -> PeriodEndResult:
    """
    Close the current period.

    Everyone on court leaves in a final event at 0:00 (skipped when the court
    is already empty), closing every open span. The next period, if any,
    becomes current with a fresh stopped clock; after the last period the
    clock stays stopped at zero.
    """
    p_idx = game.current_period
    period = game.current_period_data
    if clock is not None and clock.time_remaining > 0:
        logger.info("Period %s ended with %ss still on the clock",
                    period.period_number, clock.time_remaining)

    if game.active_players:
        players_out = _resolve_players(game, list(game.active_players))
        game, _ = _record_event(game, [], players_out, 0)
    game = replace(game, active_players=[])

    if p_idx + 1 < len(game.periods):
        next_period = game.periods[p_idx + 1]
        game = replace(game, current_period=p_idx + 1)
        new_clock = reset_clock(next_period.length)
        logger.info("Period %s ended; period %s is next", period.period_number,
                    next_period.period_number)
    else:
        length = period.length_seconds
        new_clock = ClockState(
            is_running=False,
            time_remaining=0,
            period_length_seconds=length,
            paused_elapsed=length,
        )
        logger.info("Final period %s ended", period.period_number)

    return PeriodEndResult(game=apply_clock(game, new_clock), clock=new_clock)


def substitution_history(game: Game) -> List[HistoryEntry]:
    """Every event in the game, by period and then latest game-clock time first."""
    history = []
    for period in game.periods:
        events = sorted(period.sub_events, key=lambda e: e.event_time, reverse=True)
        history.extend(HistoryEntry(period.period_number, e) for e in events)
    return history
