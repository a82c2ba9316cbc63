import sys

from vehicle_lab.cli import main

sys.exit(main())
