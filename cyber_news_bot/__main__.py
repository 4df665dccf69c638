from cyber_news_bot.main import main

main()
