from enum import StrEnum


class Role(StrEnum):
    DOCTOR = "Doctor"
    DETECTIVE = "Detective"
    MAFIA = "Mafia"
    CITIZEN = "Citizen"


# Display order of the referee's roles overview: the mafia group first.
ROLE_OVERVIEW_ORDER: tuple[Role, ...] = (Role.MAFIA, Role.DOCTOR, Role.DETECTIVE, Role.CITIZEN)


class GamePhase(StrEnum):
    LOBBY = "lobby"
    STARTED = "started"
