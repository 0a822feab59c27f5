import sys

from dedupe_music.cli import main

sys.exit(main())
