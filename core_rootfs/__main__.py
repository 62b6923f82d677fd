# core_rootfs/__main__.py
from core_rootfs.cli import app


def main():
    """
    Main application
    """
    app(prog_name="core-rootfs")


if __name__ == "__main__":
    main()
