"""Handlers for 'martrello board' commands."""

from martrello.cli._common import (
    board_summary,
    command,
    format_board_line,
    format_card_line,
    format_list_line,
    output_json,
    output_result,
)
from martrello.model.writer import board_to_dict


@command
async def board_list(args, controller) -> int:
    """List all boards."""
    items = [board_summary(board) for board in controller.store.boards]

    if args.json:
        output_json(items)
    elif not items:
        print("no boards")
    else:
        for b in items:
            print(format_board_line(b))

    return 0


@command
async def board_get(args, controller) -> int:
    """Show one board with its lists and cards."""
    board = controller.store.get_board(args.id)

    if args.json:
        output_json(board_to_dict(board))
        return 0

    print(f"{board.title}")
    if board.description:
        print(board.description)
    for lst in board.lists:
        print(format_list_line(lst))
        for card in lst.cards:
            print(format_card_line(card))

    return 0


@command
async def board_add(args, controller) -> int:
    """Create a board."""
    board = await controller.create_board(args.title, args.description or "", args.background or "")
    output_result(
        board_to_dict(board),
        f'Created board "{board.title}" (id {board.id})',
        args.json,
    )
    return 0


@command
async def board_rename(args, controller) -> int:
    """Rename a board."""
    board = controller.store.get_board(args.id)
    old_title = board.title
    await controller.update_board(args.id, title=args.title)
    output_result(
        {"id": board.id, "old_title": old_title, "new_title": board.title},
        f'Renamed board "{old_title}" to "{board.title}"',
        args.json,
    )
    return 0


@command
async def board_delete(args, controller) -> int:
    """Delete a board with all its lists and cards."""
    board = controller.store.get_board(args.id)
    title = board.title
    await controller.delete_board(args.id)
    output_result({"id": args.id, "title": title}, f'Deleted board "{title}"', args.json)
    return 0
