"""Flask server for Mine Navigator."""
import asyncio
import os
import logging
from datetime import datetime
from flask import Flask, request, jsonify
from flask_cors import CORS
from temporalio.client import Client, WorkflowUpdateFailedError
from temporalio.exceptions import ApplicationError
from temporalio.service import RPCError
import uuid

from mine_navigator.workflows import MinesweeperWorkflow
from mine_navigator.types import DIFFICULTY_LEVELS, GameConfig, MoveRequest, MOVE_ACTIONS
from mine_navigator.client_provider import get_task_queue, get_temporal_client

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)

# Global client reference
temporal_client: Client | None = None

# Update failure types that mean "not now" rather than "broken"
CONFLICT_ERROR_TYPES = {'GameNotActive', 'NoValidTargetError'}
ORACLE_ERROR_TYPES = {'OracleUnavailableError', 'OracleMalformedError', 'HintFailed'}


def get_attr(obj, key):
    """Get attribute from either dict or object."""
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def enum_value(value):
    return value.value if hasattr(value, 'value') else value


def serialize_datetime(value):
    return value.isoformat() if isinstance(value, datetime) else value


def serialize_cell(cell):
    return {
        'row': get_attr(cell, 'row'),
        'col': get_attr(cell, 'col'),
        'isMine': get_attr(cell, 'is_mine'),
        'isRevealed': get_attr(cell, 'is_revealed'),
        'isFlagged': get_attr(cell, 'is_flagged'),
        'adjacentMines': get_attr(cell, 'adjacent_mines'),
        'exploded': bool(get_attr(cell, 'exploded')),
    }


def serialize_game_state(game_state):
    """Convert game state to JSON-serializable format."""
    if not game_state:
        return None

    board = get_attr(game_state, 'board')
    cells = [[serialize_cell(cell) for cell in row] for row in get_attr(board, 'cells') or []] if board else []
    status = enum_value(get_attr(game_state, 'status')) or 'NOT_STARTED'

    return {
        'id': get_attr(game_state, 'id'),
        'board': {
            'cells': cells,
            'rows': get_attr(board, 'rows') if board else 0,
            'cols': get_attr(board, 'cols') if board else 0,
            'mineCount': get_attr(board, 'mine_count') if board else 0
        },
        'status': str(status).upper(),
        'startTime': serialize_datetime(get_attr(game_state, 'start_time')),
        'endTime': serialize_datetime(get_attr(game_state, 'end_time')),
        'flagsUsed': get_attr(game_state, 'flags_used'),
        'cellsRevealed': get_attr(game_state, 'cells_revealed')
    }


def serialize_hint(hint):
    return {
        'actionType': enum_value(get_attr(hint, 'action_type')),
        'row': get_attr(hint, 'row'),
        'col': get_attr(hint, 'col'),
        'reasoning': get_attr(hint, 'reasoning'),
        'isConfident': get_attr(hint, 'is_confident'),
    }


def parse_game_config(data) -> GameConfig:
    """Build a GameConfig from a request body, raising ValueError when invalid."""
    data = data or {}
    difficulty = data.get('difficulty')
    if difficulty is not None:
        if difficulty not in DIFFICULTY_LEVELS:
            raise ValueError(f"Unknown difficulty: {difficulty}")
        return DIFFICULTY_LEVELS[difficulty]

    config_data = data.get('config')
    if not config_data or any(not isinstance(config_data.get(key), int) for key in ('rows', 'cols', 'mineCount')):
        raise ValueError('Invalid game configuration')

    config = GameConfig(
        rows=config_data['rows'],
        cols=config_data['cols'],
        mine_count=config_data['mineCount']
    )
    if config.rows < 1 or config.cols < 1:
        raise ValueError('Board must have at least one row and one column')
    if config.mine_count < 1:
        raise ValueError('Board needs at least one mine')
    if config.mine_count >= config.rows * config.cols:
        raise ValueError('Too many mines for the board size')
    return config


def update_failure_response(error: WorkflowUpdateFailedError, action: str):
    cause = error.cause
    error_type = cause.type if isinstance(cause, ApplicationError) else None
    message = cause.message if isinstance(cause, ApplicationError) else str(error)
    logger.warning(f"{action} failed ({error_type}): {message}")

    if error_type in CONFLICT_ERROR_TYPES:
        return jsonify({'error': message}), 409
    if error_type in ORACLE_ERROR_TYPES:
        return jsonify({'error': 'Hint service unavailable'}), 502
    return jsonify({'error': message}), 400


async def query_with_retry(handle, query_name, max_retries=5):
    """Query with retry logic for workflow initialization."""
    for i in range(max_retries):
        try:
            game_state = await handle.query(query_name)
            if get_attr(game_state, 'board') or i == max_retries - 1:
                return game_state
        except RPCError:
            if i == max_retries - 1:
                raise
        logger.info(f"Game not ready yet, retrying in {(i + 1) * 100}ms...")
        await asyncio.sleep((i + 1) * 0.1)


@app.route('/api/games', methods=['POST'])
def create_game():
    """Create a new game."""
    try:
        config = parse_game_config(request.get_json(silent=True))
    except ValueError as error:
        return jsonify({'error': str(error)}), 400

    try:
        game_id = str(uuid.uuid4())

        async def start_workflow():
            handle = await temporal_client.start_workflow(
                MinesweeperWorkflow.run,
                args=[game_id, config],
                id=game_id,
                task_queue=get_task_queue()
            )
            return await query_with_retry(handle, "get_game_state_query")

        game_state = asyncio.run(start_workflow())
        logger.info(f"Created game {game_id} ({config.rows}x{config.cols}, {config.mine_count} mines)")
        return jsonify({'gameState': serialize_game_state(game_state)})

    except Exception as error:
        logger.error(f"Error creating game: {error}")
        return jsonify({'error': 'Failed to create game'}), 500


@app.route('/api/games/<game_id>', methods=['GET'])
def get_game_state(game_id):
    """Get game state."""
    try:
        async def query_game():
            handle = temporal_client.get_workflow_handle(game_id)
            return await query_with_retry(handle, "get_game_state_query")

        game_state = asyncio.run(query_game())
        return jsonify({'gameState': serialize_game_state(game_state)})

    except Exception as error:
        logger.error(f"Error getting game state: {error}")
        return jsonify({'error': 'Game not found'}), 404


@app.route('/api/games/<game_id>/moves', methods=['POST'])
def make_move(game_id):
    """Make a move."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data.get('row'), int) or \
       not isinstance(data.get('col'), int) or \
       data.get('action') not in MOVE_ACTIONS:
        return jsonify({'error': 'Invalid move request'}), 400

    move_request = MoveRequest(row=data['row'], col=data['col'], action=data['action'])

    try:
        async def execute_move():
            handle = temporal_client.get_workflow_handle(game_id)
            return await handle.execute_update("make_move_update", move_request)

        game_state = asyncio.run(execute_move())
        return jsonify({'gameState': serialize_game_state(game_state)})

    except WorkflowUpdateFailedError as error:
        return update_failure_response(error, "Move")
    except Exception as error:
        logger.error(f"Error making move: {error}")
        return jsonify({'error': 'Failed to make move'}), 500


@app.route('/api/games/<game_id>/restart', methods=['POST'])
def restart_game(game_id):
    """Restart game."""
    try:
        config = parse_game_config(request.get_json(silent=True))
    except ValueError as error:
        return jsonify({'error': str(error)}), 400

    try:
        async def execute_restart():
            handle = temporal_client.get_workflow_handle(game_id)
            return await handle.execute_update("restart_game_update", config)

        game_state = asyncio.run(execute_restart())
        return jsonify({'gameState': serialize_game_state(game_state)})

    except WorkflowUpdateFailedError as error:
        return update_failure_response(error, "Restart")
    except Exception as error:
        logger.error(f"Error restarting game: {error}")
        return jsonify({'error': 'Failed to restart game'}), 500


@app.route('/api/games/<game_id>/hint', methods=['POST'])
def get_hint(game_id):
    """Ask the hint oracle for a suggested move. The game itself is unchanged."""
    try:
        async def execute_hint():
            handle = temporal_client.get_workflow_handle(game_id)
            return await handle.execute_update("request_hint_update")

        hint = asyncio.run(execute_hint())
        return jsonify({'hint': serialize_hint(hint)})

    except WorkflowUpdateFailedError as error:
        return update_failure_response(error, "Hint")
    except Exception as error:
        logger.error(f"Error getting hint: {error}")
        return jsonify({'error': 'Failed to get hint'}), 500


@app.route('/api/games/<game_id>/close', methods=['POST'])
def close_game(game_id):
    """Close a game; its workflow completes."""
    try:
        async def send_close():
            handle = temporal_client.get_workflow_handle(game_id)
            await handle.signal("close_game_signal")

        asyncio.run(send_close())
        return jsonify({'id': game_id}), 202

    except Exception as error:
        logger.error(f"Error closing game: {error}")
        return jsonify({'error': 'Game not found'}), 404


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'OK',
        'timestamp': datetime.now().isoformat()
    })


async def initialize_client():
    """Initialize Temporal client."""
    global temporal_client
    temporal_client = await get_temporal_client()
    logger.info("Connected to Temporal server")


def main():
    """Start the Flask server."""
    try:
        asyncio.run(initialize_client())

        port = int(os.getenv("PORT", 3000))
        logger.info(f"Mine Navigator server running on http://localhost:{port}")
        logger.info("Make sure to start the Temporal worker in another terminal: python -m mine_navigator.worker")

        app.run(host='0.0.0.0', port=port, debug=False)

    except Exception as error:
        logger.error(f"Failed to start server: {error}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
