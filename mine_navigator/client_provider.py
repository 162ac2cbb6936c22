import os
import pathlib
import platform
from temporalio.client import Client
from temporalio.envconfig import ClientConfig

DEFAULT_TASK_QUEUE = "minesweeper-task-queue"


# Task queue shared by the API server (which starts games) and the worker.
def get_task_queue() -> str:
    return os.getenv("TASK_QUEUE", DEFAULT_TASK_QUEUE)


# Connects to Temporal. A TEMPORAL_PROFILE naming a profile in the
# temporal.toml config file takes precedence; otherwise TEMPORAL_ADDRESS
# and TEMPORAL_NAMESPACE are used, defaulting to a local dev server.
async def get_temporal_client() -> Client:
    profile_name = os.getenv("TEMPORAL_PROFILE")
    config_file_path = get_config_file_path()
    if profile_name and config_file_path.is_file():
        connect_config = ClientConfig.load_client_connect_config(
            profile=profile_name,
            config_file=str(config_file_path),
        )
        return await Client.connect(**connect_config)
    return await Client.connect(
        os.getenv("TEMPORAL_ADDRESS", "localhost:7233"),
        namespace=os.getenv("TEMPORAL_NAMESPACE", "default"),
    )


# Location of temporal.toml for the current OS, honouring
# TEMPORAL_CONFIG_FILE when it is set.
def get_config_file_path() -> pathlib.Path:
    override = os.getenv("TEMPORAL_CONFIG_FILE")
    if override:
        return pathlib.Path(override)

    system = platform.system()
    if system == "Darwin":
        base = pathlib.Path.home() / "Library/Application Support"
    elif system == "Windows":
        app_data = os.getenv("AppData")
        if app_data is None:
            raise RuntimeError("AppData environment variable not set")
        base = pathlib.Path(app_data)
    else:
        xdg_config_home = os.getenv("XDG_CONFIG_HOME")
        base = pathlib.Path(xdg_config_home) if xdg_config_home else pathlib.Path.home() / ".config"

    return base / "temporalio/temporal.toml"
