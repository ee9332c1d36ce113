import sys

from kubectllama.cli import main

if __name__ == "__main__":
    sys.exit(main())
