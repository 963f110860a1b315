"""ERPNext API key authentication for the connection check."""

import httpx
from rich.console import Console

from core.config import CONFIG_FILE, Config
from core.exceptions import ConfigurationError
from core.request_types import ApiCredentials
from services.composer import ApiTesterClient, normalize_base_url, validate_url

console = Console()


def load_credentials(config: Config) -> tuple[str, ApiCredentials]:
    """Return the configured base URL and API key pair."""
    base_url = normalize_base_url(config.erpnext.base_url)
    if not base_url:
        raise ConfigurationError(f"erpnext.base_url is not set in {CONFIG_FILE}")
    if not validate_url(base_url):
        raise ConfigurationError(f"erpnext.base_url is not a valid URL: {base_url}")

    credentials = ApiCredentials(config.erpnext.api_key, config.erpnext.api_secret)
    if not credentials.complete:
        raise ConfigurationError(f"erpnext.api_key and erpnext.api_secret must be set in {CONFIG_FILE}")
    return base_url, credentials


def check_auth(config: Config) -> bool:
    """Check the configured credentials against ERPNext directly."""
    try:
        base_url, credentials = load_credentials(config)
    except ConfigurationError as e:
        console.print(f"[yellow]Not configured:[/yellow] {e}")
        return False

    with httpx.Client(base_url=base_url, timeout=config.upstream.timeout) as http:
        client = ApiTesterClient(http, via_proxy=False)
        result = client.test_connection(base_url, credentials)

    if result.success:
        user = result.data.get("message") if isinstance(result.data, dict) else result.data
        console.print(f"[green]Authenticated[/green] as {user} on {base_url}")
        return True

    console.print(f"[red]Connection failed:[/red] {result.error}")
    return False


def print_auth_status(config: Config) -> None:
    """CLI entry point for auth check."""
    check_auth(config)
