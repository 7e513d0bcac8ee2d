import sys
from meshcaster.main import main

if __name__ == "__main__":
    sys.exit(main())
