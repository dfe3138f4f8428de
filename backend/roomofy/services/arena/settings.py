from dataclasses import dataclass


@dataclass(frozen=True)
class ArenaSettings:
    starting_balance: int = 1000
    platform_account: str = 'platform'
    fee_fraction: float = 0.20
    board_size: int = 8
    win_length: int = 3
    max_players: int = 2

    @classmethod
    def from_config(cls, config) -> 'ArenaSettings':
        return cls(
            starting_balance=int(config.get('STARTING_BALANCE', cls.starting_balance)),
            platform_account=str(config.get('PLATFORM_ACCOUNT_ID', cls.platform_account)),
            fee_fraction=float(config.get('PLATFORM_FEE_FRACTION', cls.fee_fraction)),
            board_size=int(config.get('BOARD_SIZE', cls.board_size)),
            win_length=int(config.get('WIN_LENGTH', cls.win_length)),
            max_players=int(config.get('MAX_PLAYERS', cls.max_players)),
        )
