import uvicorn

from . import config


def main():
    uvicorn.run("sd_inventory_service.main:app", host="0.0.0.0", port=config.PORT, reload=config.DEBUG)


if __name__ == "__main__":
    main()
