from dither_web.cli import main

main()
