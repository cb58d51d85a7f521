from visitorhub.api import app, init_app  # noqa
from visitorhub.command import console_main

init_app()

if __name__ == "__main__":
    console_main()
