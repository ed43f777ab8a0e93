import sys

from slime_bridge.main import main

sys.exit(main())
