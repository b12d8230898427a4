import logging


logger = logging.getLogger(__name__)


def load_env_file() -> None:
    """Load environment variables from a local .env file without overwriting.

    WHAT:
        Loads variables from backend/.env into os.environ. Variables that
        are already exported win.
    WHY:
        Developers can keep local settings in .env while deployed
        environments configure everything through real env vars.
    """
    from dotenv import load_dotenv

    loaded = load_dotenv(override=False)
    if loaded:
        logger.info("Loaded local .env file (existing variables were NOT overwritten)")
    else:
        logger.debug("No local .env file found or loaded")
