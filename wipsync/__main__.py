from wipsync.cli import main

main()
