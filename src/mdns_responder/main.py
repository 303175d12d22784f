"""
mDNS Responder Main Entry Point

This script provides the main entry point for running the mDNS responder.
"""

import asyncio
import dataclasses
import platform
import signal
import sys
from pathlib import Path

# Try to use uvloop for better performance on Unix systems
try:
    if platform.system() != "Windows":
        import uvloop

        asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())
except ImportError:
    pass

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import yaml

from mdns_responder.config.loader import ConfigLoader
from mdns_responder.core import MdnsResponder
from mdns_responder.mdns_logging import get_logger, log_exception, setup_logging


class MdnsResponderApp:
    """mDNS Responder Application"""

    def __init__(self, config_path: str = None, hostname: str = None, log_level: str = None):
        self.config_path = config_path
        self.hostname = hostname
        self.log_level = log_level
        self.config = None
        self.responder = None
        self._shutdown_event = asyncio.Event()
        self.logger = None

    def initialize(self):
        """Load configuration, set up logging and build the responder"""
        config = ConfigLoader(self.config_path).load_config()

        # Command line flags win over file and environment settings
        if self.hostname:
            config.responder = dataclasses.replace(
                config.responder, hostname=self.hostname
            )
        if self.log_level:
            config.logging = dataclasses.replace(config.logging, level=self.log_level)
        self.config = config

        setup_logging(config.logging)
        self.logger = get_logger("mdns_responder_app")

        self.responder = MdnsResponder(config.responder)
        self.responder.on_hostname_confirmed(self._on_hostname_confirmed)
        self.responder.on_error(self._on_error)

        self.logger.info(
            "mDNS responder initialized",
            base_name=self.responder.base_name,
            port=config.responder.port,
            ipv4=config.responder.enable_ipv4,
            ipv6=config.responder.enable_ipv6,
            membership_interval=config.responder.membership_interval,
            confirmation_timeout=config.responder.confirmation_timeout,
        )

    def _on_hostname_confirmed(self, name: str):
        self.logger.info("Hostname confirmed", hostname=name)

    def _on_error(self, message: str):
        self.logger.warning("Responder error", error=message)

    async def start(self):
        """Run the responder until a shutdown signal arrives"""
        if not self.responder:
            self.initialize()

        try:
            await self.responder.start()

            # Setup signal handlers
            loop = asyncio.get_running_loop()
            for sig in [signal.SIGTERM, signal.SIGINT]:
                try:
                    loop.add_signal_handler(sig, self._signal_handler)
                except NotImplementedError:
                    # Signal handlers are unavailable on Windows event loops
                    pass

            # Wait for shutdown signal
            await self._shutdown_event.wait()

        except Exception as e:
            log_exception(self.logger, "Error running mDNS responder", e)
            raise
        finally:
            await self.stop()

    async def stop(self):
        """Stop the responder"""
        if self.responder:
            await self.responder.stop()
        self.logger.info("mDNS responder shutdown complete")

    def _signal_handler(self):
        """Handle shutdown signals"""
        self.logger.info("Received shutdown signal")
        self._shutdown_event.set()


async def main():
    """Main function"""
    import argparse

    parser = argparse.ArgumentParser(description="mDNS hostname responder")
    parser.add_argument("--config", "-c", default=None, help="Configuration file path")
    parser.add_argument(
        "--hostname", "-n", default=None, help="Base hostname to claim (without .local)"
    )
    parser.add_argument(
        "--log-level",
        "-l",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level",
    )

    args = parser.parse_args()

    app = MdnsResponderApp(args.config, args.hostname, args.log_level)

    try:
        app.initialize()
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Invalid configuration: {e}")
        sys.exit(2)

    try:
        await app.start()
    except KeyboardInterrupt:
        print("\nReceived keyboard interrupt")
    except Exception as e:
        print(f"mDNS responder failed: {e}")
        sys.exit(1)


def run():
    """Console script entry point"""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nmDNS responder interrupted")


if __name__ == "__main__":
    run()
