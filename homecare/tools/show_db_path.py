from __future__ import annotations

from homecare.db import auth_engine, engine


def main() -> None:
    print("APP ENGINE URL :", engine.url)
    print("APP DB FILE    :", engine.url.database)
    print("AUTH ENGINE URL:", auth_engine.url)
    print("AUTH DB FILE   :", auth_engine.url.database)


if __name__ == "__main__":
    main()
