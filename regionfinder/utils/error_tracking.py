"""Error tracking and monitoring setup."""
import os
import logging
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration


def filter_sensitive_data(event, hint):
    """Filter sensitive data from Sentry events."""
    # Listings carry phone numbers and home addresses
    if event.get('extra'):
        sensitive_keys = ['phone', 'address', 'email', 'password', 'token']
        for key in list(event['extra'].keys()):
            if any(s in key.lower() for s in sensitive_keys):
                event['extra'][key] = '***REDACTED***'

    if 'contexts' in event:
        for name, ctx in event['contexts'].items():
            if isinstance(ctx, dict) and any(s in name.lower() for s in ('phone', 'address', 'email')):
                event['contexts'][name] = {"value": '***REDACTED***'}

    # Filter environment variables that might contain secrets
    if 'environment' in event:
        env = event['environment']
        if isinstance(env, dict):
            sensitive_env_vars = ['API_KEY', 'SECRET', 'PASSWORD', 'TOKEN', 'AUTH', 'DSN']
            for key in list(env.keys()):
                if any(sensitive in key.upper() for sensitive in sensitive_env_vars):
                    env[key] = '***REDACTED***'

    return event


def setup_error_tracking(
    dsn: Optional[str] = None,
    environment: Optional[str] = None,
    release: Optional[str] = None,
    traces_sample_rate: float = 0.1,
) -> bool:
    """
    Setup Sentry error tracking.

    Args:
        dsn: Sentry DSN (if None, will try to get from SENTRY_DSN env var)
        environment: Environment name (development, staging, production)
        release: Release version
        traces_sample_rate: Percentage of transactions to trace (0.0 to 1.0)

    Returns:
        True if Sentry was initialized, False otherwise
    """
    dsn = dsn or os.getenv("SENTRY_DSN")
    if not dsn:
        logging.info("Sentry DSN not provided. Error tracking disabled.")
        return False

    environment = environment or os.getenv("ENVIRONMENT", "development")
    release = release or os.getenv("RELEASE", "unknown")

    try:
        sentry_sdk.init(
            dsn=dsn,
            environment=environment,
            release=release,
            integrations=[
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            ],
            traces_sample_rate=traces_sample_rate,
            before_send=filter_sensitive_data,
            attach_stacktrace=True,
            send_default_pii=False,
            debug=os.getenv("SENTRY_DEBUG", "false").lower() == "true",
        )

        logging.info(f"Sentry error tracking initialized for environment: {environment}")
        return True
    except Exception as e:
        logging.error(f"Failed to initialize Sentry: {e}")
        return False


def capture_exception(error: BaseException, context: Optional[dict] = None) -> bool:
    """Capture exception and send to Sentry if a client is active."""
    if not sentry_sdk.get_client().is_active():
        return False

    with sentry_sdk.new_scope() as scope:
        if context:
            for key, value in context.items():
                scope.set_context(key, {"value": str(value)})
        sentry_sdk.capture_exception(error)
    return True
