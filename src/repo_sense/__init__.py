"""RepoSense: budgeted file selection and model-assisted analysis of GitHub repositories."""

import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(module)s]: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
for _noisy in ("httpx", "openai"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
