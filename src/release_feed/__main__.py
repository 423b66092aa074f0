from release_feed.aggregator import main

raise SystemExit(main())
