from circlegrid.cli.main import main

raise SystemExit(main())
