""" Visitors for mymca.nbt.TagNode.visit()
"""

class Visitor:
    """ The core visitor interface

        Default implementations do nothing
    """

    def enter(self, path, name, node):
        pass

    def leave(self, path, name, node):
        pass

    def close(self):
        """ Called by node.visit when the tag tree has been entirely traversed.

            No other method of the visitor should be called after close() has
            been issued.
        """
        pass

class SmartVisitor(Visitor):
    """ The _smart_ visitor will require node's cooperation
        to dispatch the enter and leave message to the
        right method depending the visited node.

        This is an implementation of the visitor pattern
        in accordance with the Go4 Design Pattern book.

        default implementations delegate to the vistor for
        a more generic function up until `visitNode`
    """
    class Action:
        def __init__(self, visitor, path, name, node):
            self._visitor = visitor
            self._path = path
            self._name = name
            self._node = node

        def visitNode(self):
            pass
        def visitEnd(self):
            return self.visitNode()
        def visitAtom(self):
            return self.visitNode()
        def visitNumber(self):
            return self.visitAtom()
        def visitIntegral(self):
            return self.visitNumber()
        def visitByte(self):
            return self.visitIntegral()
        def visitShort(self):
            return self.visitIntegral()
        def visitInt(self):
            return self.visitIntegral()
        def visitLong(self):
            return self.visitIntegral()
        def visitFloatingPoint(self):
            return self.visitNumber()
        def visitFloat(self):
            return self.visitFloatingPoint()
        def visitDouble(self):
            return self.visitFloatingPoint()
        def visitString(self):
            return self.visitAtom()
        def visitArray(self):
            return self.visitAtom()
        def visitByteArray(self):
            return self.visitArray()
        def visitIntArray(self):
            return self.visitArray()
        def visitLongArray(self):
            return self.visitArray()
        def visitComposite(self):
            return self.visitNode()
        def visitList(self):
            return self.visitComposite()
        def visitCompound(self):
            return self.visitComposite()

    class Enter(Action):
        pass

    class Leave(Action):
        pass

    def enter(self, path, name, node):
        return node.trait.accept(self.Enter(self, path, name, node))

    def leave(self, path, name, node):
        return node.trait.accept(self.Leave(self, path, name, node))

class Exporter(SmartVisitor):
    """ Convert a tag tree to native Python objects.

        Compounds become dicts, lists and arrays become lists,
        atoms become int, float or str.
    """
    def __init__(self):
        self._top = ('', dict(), None)

    class Enter(SmartVisitor.Enter):
        def _push(self, item):
            visitor = self._visitor
            visitor._top = (self._name, item, visitor._top)

        def visitEnd(self):
            self._push(None)
        def visitAtom(self):
            self._push(self._node.value)
        def visitArray(self):
            self._push(self._node.value.tolist())
        def visitList(self):
            self._push(list())
        def visitCompound(self):
            self._push(dict())

    class Leave(SmartVisitor.Leave):
        def visitNode(self):
            visitor = self._visitor
            name, item, visitor._top = visitor._top
            container = visitor._top[1]
            if isinstance(container, list):
                container.append(item)
            else:
                container[name] = item

    def close(self):
        return self._top[1]['']
