from post_video.cli import main

main()
