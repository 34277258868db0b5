import sys

from carjourney.main import main

# python main.py --static-map map.html   -> one-off map like the first demo
# python main.py                         -> live map with Start Journey button
if __name__ == "__main__":
    sys.exit(main())
