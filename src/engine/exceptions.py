class EngineError(Exception):
    """Base class for recoverable pairing/scoring failures."""
    code = "engine_error"
    message = "Operation failed"

    def __init__(self, message=None):
        super().__init__(message or self.message)

    @property
    def detail(self) -> str:
        return str(self)


class InsufficientPlayers(EngineError):
    code = "insufficient_players"
    message = "Not enough players with an assigned skill level"


class NotEnoughTeams(EngineError):
    code = "not_enough_teams"
    message = "Could not form at least 2 teams with the selected strategy"


class InvalidComposition(EngineError):
    code = "invalid_composition"
    message = "Each team needs exactly 2 distinct players and no player can be on both teams"


class IncompleteScore(EngineError):
    code = "incomplete_score"
    message = "Scores are incomplete or invalid, a winner cannot be determined"


class NoScope(EngineError):
    code = "no_scope"
    message = "No tournament selected"


class RoundNotFinished(EngineError):
    code = "round_not_finished"
    message = "Complete or delete every match of the current round first"


class MatchLocked(EngineError):
    code = "match_locked"
    message = "Match is already completed"
