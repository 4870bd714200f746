from heatfeed.cli import main

raise SystemExit(main())
