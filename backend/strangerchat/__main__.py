import uvicorn

from .config import get_config

if __name__ == "__main__":
    config = get_config()
    uvicorn.run("strangerchat.main:app", host=config.host, port=config.port)
