"""Application entry point for the CourseHub backend server."""

from coursehub.app import App
from coursehub.config import Config
from coursehub.logging import setup_logging
from coursehub.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app)


if __name__ == "__main__":
    main()
