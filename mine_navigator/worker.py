"""Temporal worker for Mine Navigator."""
import asyncio
import logging
from temporalio.worker import Worker
from mine_navigator.workflows import MinesweeperWorkflow
from mine_navigator import activities
from mine_navigator.client_provider import get_task_queue, get_temporal_client

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def main():
    """Start the Temporal worker."""
    client = await get_temporal_client()
    task_queue = get_task_queue()

    worker = Worker(
        client,
        task_queue=task_queue,
        workflows=[MinesweeperWorkflow],
        activities=[
            activities.create_game_board,
            activities.reveal_cell,
            activities.toggle_flag,
            activities.suggest_hint,
        ],
    )

    logger.info("Worker started, connected to Temporal")
    logger.info(f"Listening on task queue: {task_queue}")

    await worker.run()


if __name__ == "__main__":
    asyncio.run(main())
