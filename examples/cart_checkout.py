from fluxion import ActionChannel, Store

# A store for a shopping cart
cart = Store.create({"item_count": 1, "price_per_item": 10.0})

set_item_count = ActionChannel(name="set_item_count")
set_price = ActionChannel(name="set_price")

# Each slice owns the reducer for its own key
cart.create_slice("item_count").add_reducer(set_item_count, lambda _, count: count)
cart.create_slice("price_per_item").add_reducer(set_price, lambda _, price: price)


def update_ui(total: float):
    print(f">>> Cart Total: ${total:.2f}")


# select >> derives the total from the whole cart on every change
total_price = cart.select() >> (
    lambda state: state["item_count"] * state["price_per_item"]
)
total_price.subscribe(update_ui)  # Prints the current total right away

print("=" * 50)

# Now whenever we change the cart state, total_price updates automatically,
# and the UI is updated accordingly.
set_item_count.next(2)
set_price.next(15)

# >>> Cart Total: $10.00
# ==================================================
# >>> Cart Total: $20.00
# >>> Cart Total: $30.00
