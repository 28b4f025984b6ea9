# Default hardhat localnet deployment addresses
DEFAULT_RPC_URL = "http://localhost:8545"
DEFAULT_PLAY_GAME_CONTRACT = "0xCf7Ed3AccA5a467e9e704C703E8D87F634fB0Fc9"
DEFAULT_TOKEN_STORE_CONTRACT = "0x9fE46736679d2D9a65F0992F2272dE9f3c7fa6e0"

# token constants
GT_DECIMALS = 18
DEFAULT_USDT_DECIMALS = 18

# query surface constants
DEFAULT_LEADERBOARD_PORT = 3001
DEFAULT_LEADERBOARD_LIMIT = 10
DEFAULT_MATCHES_LIMIT = 20

# listener constants
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_MAX_BLOCK_RANGE = 2000

LOGS_DIR = "logs"
