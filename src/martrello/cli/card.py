"""Handlers for 'martrello card' commands."""

from martrello.cli._common import command, error, format_card_line, output_json, output_result
from martrello.model.writer import card_to_dict


@command
async def card_list(args, controller) -> int:
    """List cards of a board, grouped by list."""
    board = controller.store.get_board(args.board)

    if args.json:
        output_json([card_to_dict(card) for lst in board.lists for card in lst.cards])
        return 0

    for lst in board.lists:
        print(f"{lst.title}")
        if not len(lst.cards):
            print("  (empty)")
        for card in lst.cards:
            print(format_card_line(card))

    return 0


@command
async def card_add(args, controller) -> int:
    """Add a card at the end of a list."""
    card = await controller.create_card(args.list, args.title, args.description or "")
    output_result(
        card_to_dict(card),
        f'Created card "{card.title}" (id {card.id})',
        args.json,
    )
    return 0


@command
async def card_move(args, controller) -> int:
    """Move a card to a list, optionally at a position."""
    store = controller.store
    store.get_card(args.id)
    target = store.get_list(args.list)

    # CLI uses 1-indexed positions, the store uses 0-indexed
    to_index = None if args.position is None else max(args.position - 1, 0)
    move = await controller.request_move_card(args.id, target.id, to_index)

    card = store.get_card(args.id)
    position = card.position + 1
    output_result(
        {"id": card.id, "list_id": card.list_id, "position": position, "state": move.state.value},
        f'Moved card "{card.title}" to "{target.title}" position {position}',
        args.json,
    )
    return 0


@command
async def card_set(args, controller) -> int:
    """Change a card's title or description."""
    if args.title is None and args.description is None:
        error("nothing to change: give --title or --description", args.json)
    await controller.update_card(args.id, title=args.title, description=args.description)
    card = controller.store.get_card(args.id)
    output_result(card_to_dict(card), f'Updated card "{card.title}"', args.json)
    return 0


@command
async def card_delete(args, controller) -> int:
    """Delete a card."""
    card = controller.store.get_card(args.id)
    title = card.title
    await controller.delete_card(args.id)
    output_result({"id": args.id, "title": title}, f'Deleted card "{title}"', args.json)
    return 0
