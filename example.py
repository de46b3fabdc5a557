import cbrf_exchange
from cbrf_exchange import CbrfExchange

print(cbrf_exchange.__version__)  # 1.0.0

# Default usage: settings come from CBRF_EXCHANGE_* environment variables
with CbrfExchange() as exchange:
    # Persist default options (selected currencies, feed URL, TTL)
    exchange.install()

    # Cached snapshot; fetched from cbr.ru on first use
    snapshot = exchange.rates.get()
    print(len(snapshot.records), "rates, fresh until", snapshot.expires_at)

    # Single currency lookup
    print(exchange.lookup("USD"))
    # => RateRecord(currency_code='USD', numeric_code='840', name='US Dollar', nominal=1, ...)

    # Price of 100 USD in roubles, unchanged when the code is unknown
    print(exchange.convert(100, "USD"))
    print(exchange.convert(100, "ZZZ"))  # => 100

    # Price range of a variable product
    print(exchange.convert_range([10, 25, 40], "EUR"))

    # Settings listing straight from the feed
    for entry in exchange.available_rates():
        print(entry.record.currency_code, entry.selected)

    # Admin "update rates" button
    exchange.force_refresh()
