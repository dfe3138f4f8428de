class ArenaError(Exception):
    """Recoverable error reported back to the caller.

    `code` is the stable identifier clients switch on; `status` is the
    HTTP status used when the error surfaces through a REST route.
    """

    code = 'ArenaError'
    status = 400

    def __init__(self, message=None, **details):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.details = details

    def to_dict(self):
        payload = {'code': self.code, 'message': self.message}
        payload.update(self.details)
        return payload


class NotFound(ArenaError):
    code = 'NotFound'
    status = 404


class AlreadyFull(ArenaError):
    code = 'AlreadyFull'
    status = 409


class AlreadyJoined(ArenaError):
    code = 'AlreadyJoined'
    status = 409


class NotInMatch(ArenaError):
    code = 'NotInMatch'
    status = 403


class NotYourTurn(ArenaError):
    code = 'NotYourTurn'
    status = 409


class OutOfBounds(ArenaError):
    code = 'OutOfBounds'


class CellTaken(ArenaError):
    code = 'CellTaken'
    status = 409


class InsufficientFunds(ArenaError):
    code = 'InsufficientFunds'
    status = 402


class MatchFinished(ArenaError):
    code = 'MatchFinished'
    status = 409


class InvalidRequest(ArenaError):
    code = 'InvalidRequest'


class NotRegistered(ArenaError):
    code = 'NotRegistered'
    status = 401
