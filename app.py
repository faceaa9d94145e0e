"""Flask web app for Naeily Story Cuts."""

# Load environment variables from .env file before other imports
from dotenv import load_dotenv  # type: ignore[import-untyped]

load_dotenv()  # noqa: E402

import os  # noqa: E402
import logging  # noqa: E402
import secrets  # noqa: E402
from typing import Any, Dict, Optional  # noqa: E402
from flask import Flask  # noqa: E402
from flask_cors import CORS  # type: ignore[import-untyped]  # noqa: E402
from flask_limiter import Limiter  # type: ignore[import-untyped]  # noqa: E402
from flask_limiter.util import get_remote_address  # type: ignore[import-untyped]  # noqa: E402
from src.storycuts.api import register_routes  # noqa: E402
from src.storycuts.api.helpers import PIPELINE_EXTENSION  # noqa: E402
from src.storycuts.pipeline import StoryPipeline  # noqa: E402
from src.storycuts.utils.errors import register_error_handlers  # noqa: E402

# Configure logging
logging.basicConfig(
    level=logging.INFO if os.getenv('FLASK_ENV') != 'development' else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(config: Optional[Dict[str, Any]] = None, pipeline: Optional[StoryPipeline] = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config: Extra Flask config values (applied before extensions are set up)
        pipeline: Pipeline instance to serve (default: a new StoryPipeline
            using the default Gemini provider)

    Returns:
        Configured Flask app
    """
    flask_app = Flask(__name__, static_folder='static', template_folder='templates')

    secret_key = os.getenv('FLASK_SECRET_KEY')
    if not secret_key:
        logger.warning("FLASK_SECRET_KEY not set; using a random key (sessions reset on restart)")
        secret_key = secrets.token_hex(32)
    flask_app.config['SECRET_KEY'] = secret_key
    # Form posts return at once and the page polls while Gemini works
    flask_app.config['BACKGROUND_GENERATION'] = True
    if config:
        flask_app.config.update(config)

    CORS(flask_app)

    # Configure rate limiting
    limiter = Limiter(
        app=flask_app,
        key_func=get_remote_address,
        default_limits=["200 per day", "50 per hour"],
        storage_uri=os.getenv('REDIS_URL', 'memory://'),  # Use Redis in production if available
        headers_enabled=True
    )

    flask_app.extensions[PIPELINE_EXTENSION] = pipeline or StoryPipeline()

    register_error_handlers(flask_app, debug=os.getenv('FLASK_ENV') == 'development')
    register_routes(flask_app, limiter)

    return flask_app


def check_llm_setup() -> bool:
    """
    Check LLM (Large Language Model) setup and log the result.

    Verifies that the Google Gemini API is properly configured by checking:
    1. Whether GOOGLE_API_KEY (or API_KEY) is set
    2. Whether the provider can be initialized
    3. Whether the configured model is available

    Returns:
        True if generation should work, False otherwise
    """
    from src.storycuts.providers import get_default_provider

    if not (os.getenv("GOOGLE_API_KEY") or os.getenv("API_KEY")):
        logger.warning(
            "GOOGLE_API_KEY not set. The page will load, but every generation "
            "request will fail until a key is configured."
        )
        return False

    try:
        provider = get_default_provider()
    except ValueError as e:
        logger.warning(f"Could not initialize Gemini provider: {e}")
        return False

    if provider.check_availability():
        logger.info(f"Google Gemini API ready: using model '{provider.model_name}'")
        return True

    logger.warning(f"Google Gemini API configured but model '{provider.model_name}' may not be available")
    return False


app = create_app()


if __name__ == '__main__':
    check_llm_setup()
    host = os.getenv('HOST', '127.0.0.1')
    port = int(os.getenv('PORT', '5000'))
    app.run(
        host=host,
        port=port,
        debug=os.getenv('FLASK_ENV') == 'development',
        threaded=True,
    )
