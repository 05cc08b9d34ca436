"""Run anew as a module: python -m anew [options] [FILE]."""

from .cli import main

if __name__ == "__main__":
    main()
