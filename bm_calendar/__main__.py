import sys

from bm_calendar.cli import main

sys.exit(main())
