"""Scoring constants for golfscore."""

# Option type tags
OPTION_GAME = "game"
OPTION_JUNK = "junk"
OPTION_MULTIPLIER = "multiplier"

# Game option value types
VALUE_BOOL = "bool"
VALUE_NUM = "num"
VALUE_MENU = "menu"
VALUE_TEXT = "text"

# Option scopes
SCOPE_PLAYER = "player"
SCOPE_TEAM = "team"
SCOPE_HOLE = "hole"
SCOPE_REST_OF_NINE = "rest_of_nine"
SCOPE_GAME = "game"
SCOPE_NONE = "none"

# Junk sources
BASED_ON_USER = "user"
BASED_ON_GROSS = "gross"
BASED_ON_NET = "net"

# Multiplier sub types
SUB_TYPE_AUTOMATIC = "automatic"
SUB_TYPE_BBQ = "bbq"
SUB_TYPE_PRESS = "press"

# Junk display
SHOW_IN_SCORE = "score"
SHOW_IN_FAVES = "faves"
SHOW_IN_NONE = "none"

LIMIT_ONE_PER_GROUP = "one_per_group"

# Team scoring methods
METHOD_BEST_BALL = "best_ball"
METHOD_WORST_BALL = "worst_ball"
METHOD_SUM = "sum"
METHOD_AVERAGE = "average"
TEAM_METHODS = (METHOD_BEST_BALL, METHOD_WORST_BALL, METHOD_SUM, METHOD_AVERAGE)
CALCULATION_LOGIC = "logic"

# Ranking directions
LOWER = "lower"
HIGHER = "higher"

# Score-to-par operators
PAR_EXACTLY = "exactly"
PAR_AT_MOST = "at_most"
PAR_AT_LEAST = "at_least"

# Defaults
DEFAULT_SEQ = 999
DEFAULT_MULTIPLIER_VALUE = 2
DEFAULT_PAR = 4
DEFAULT_YARDS = 0
TRUE_VALUE = "true"

# Nines
FRONT_NINE_START = 1
BACK_NINE_START = 10
HOLES_PER_NINE = 9

# Game options the engine reads by name
OPT_USE_HANDICAPS = "use_handicaps"
OPT_HANDICAP_INDEX_FROM = "handicap_index_from"
OPT_BETTER_POINTS = "better_points"
OPT_MATCH_PLAY = "match_play"
OPT_MAX_OFF_TEE = "max_off_tee"
HANDICAP_FROM_LOW = "low"
HANDICAP_FROM_FULL = "full"

# Spec types
SPEC_TYPE_POINTS = "points"
SPEC_TYPE_SKINS = "skins"

# Team options with special meaning
TEE_FLIP_WINNER = "tee_flip_winner"
TEE_FLIP_DECLINED = "tee_flip_declined"
PRE_DOUBLE = "pre_double"

# Invalidation kinds
KIND_MULTIPLIER = "multiplier"
KIND_TEE_FLIP = "tee_flip"
DEFAULT_INVALIDATION_REASON = "Availability condition no longer met"
TEE_FLIP_REASON = "Teams are no longer tied"

# Handicap math
SLOPE_STANDARD = 113
HOLES_PER_ROUND = 18

# Settlement
SPLIT_PLACES = "places"
SPLIT_PER_UNIT = "per_unit"
SPLIT_WINNER_TAKE_ALL = "winner_take_all"
DEFAULT_PLACES_PAID = 3
DEFAULT_PAYOUT_PCTS = {
    1: [100],
    2: [60, 40],
    3: [50, 30, 20],
    4: [45, 27, 18, 10],
    5: [40, 25, 17, 11, 7],
}
SETTLEMENT_EPSILON = 0.01

# Multiplier status on a hole
STATUS_ACTIVE = "active"
STATUS_INHERITED = "inherited"
